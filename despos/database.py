"""Database configuration and initialization."""
from sqlalchemy import BigInteger, Integer, create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# BIGINT primary keys do not autoincrement on SQLite
BigIntPK = BigInteger().with_variant(Integer, 'sqlite')

# Global session and engine
engine = None
db_session = None


def _create_engine(database_uri: str, echo: bool):
    """Build the engine, with the SQLite specifics needed for SAVEPOINT support."""
    if not database_uri.startswith('sqlite'):
        return create_engine(
            database_uri,
            echo=echo,
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20
        )

    sqlite_engine = create_engine(
        database_uri,
        echo=echo,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool
    )

    # pysqlite defers BEGIN on its own, which breaks nested transactions
    @event.listens_for(sqlite_engine, 'connect')
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, 'begin')
    def _emit_begin(conn):
        conn.exec_driver_sql('BEGIN')

    return sqlite_engine


def init_db(app):
    """Initialize database connection."""
    global engine, db_session
    
    engine = _create_engine(
        app.config['SQLALCHEMY_DATABASE_URI'],
        app.config.get('SQLALCHEMY_ECHO', False)
    )
    
    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )
    
    Base.query = db_session.query_property()

    if app.config.get('DB_CREATE_ALL'):
        create_all()
    
    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table registered on Base."""
    import despos.models  # noqa: F401  (registers the mappers)
    Base.metadata.create_all(bind=engine)


def drop_all():
    """Drop every table registered on Base."""
    import despos.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session
