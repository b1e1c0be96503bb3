"""Invoice number generation for new sales drafts."""
import secrets


def generate_invoice_no() -> str:
    """
    Generate a new invoice number.
    
    Two independent random unsigned 32-bit integers ``a`` and ``b`` are drawn;
    the result is the decimal sum ``a + b`` followed by the first five digits
    of ``a``. Unique enough per draft, not guaranteed unique.
    
    Examples:
        a=123456789, b=1 -> "12345679012345"
    """
    a = secrets.randbits(32)
    b = secrets.randbits(32)
    return compose_invoice_no(a, b)


def compose_invoice_no(a: int, b: int) -> str:
    return str(a + b) + str(a)[:5]
