"""Catalog blueprint - products, categories, locations and invoice types."""
from flask import Blueprint, current_app, jsonify

from despos.database import get_session
from despos.services import catalog_service, loader_service
from despos.utils.request_args import page_args, request_data

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


# =====================================================
# PRODUCTS
# =====================================================

@catalog_bp.route('/products', methods=['GET'])
def list_products():
    page_number, item_count = page_args()
    products = catalog_service.list_products(get_session(), page_number, item_count)
    return jsonify({'products': products, 'page': page_number, 'count': item_count})


@catalog_bp.route('/products/count', methods=['GET'])
def count_products():
    return jsonify({'count': catalog_service.count_products(get_session())})


@catalog_bp.route('/products/barcode/<barcode>', methods=['GET'])
def product_by_barcode(barcode: str):
    return jsonify(catalog_service.get_product_by_barcode(get_session(), barcode))


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
def get_product(product_id: int):
    return jsonify(catalog_service.get_product(get_session(), product_id))


@catalog_bp.route('/products/<int:product_id>/<item_name>', methods=['GET'])
def product_info(product_id: int, item_name: str):
    """Item manager data plus the product matching id and name."""
    page_number, item_count = page_args()
    return jsonify(loader_service.product_info_page(get_session(), product_id, item_name, page_number, item_count))


@catalog_bp.route('/manager', methods=['GET'])
def item_manager():
    page_number, item_count = page_args()
    return jsonify(loader_service.item_manager_page(get_session(), page_number, item_count))


@catalog_bp.route('/products', methods=['POST'])
def save_product():
    """Create or update a product with its price levels."""
    data = request_data()
    product = catalog_service.save_product(get_session(), data)
    current_app.logger.info(f"Catalog: saved product #{product['id']}")
    return jsonify({'status': 'success', 'product': product}), 200 if data.get('id') else 201


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
def delete_product(product_id: int):
    catalog_service.delete_product(get_session(), product_id)
    current_app.logger.info(f"Catalog: deleted product #{product_id}")
    return jsonify({'status': 'success', 'message': f'Product #{product_id} deleted'})


# =====================================================
# CATEGORIES
# =====================================================

@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    return jsonify(catalog_service.list_categories(get_session()))


@catalog_bp.route('/categories', methods=['POST'])
def save_category():
    category = catalog_service.save_category(get_session(), request_data())
    return jsonify({'status': 'success', 'category': category})


@catalog_bp.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id: int):
    catalog_service.delete_category(get_session(), category_id)
    return jsonify({'status': 'success'})


# =====================================================
# LOCATIONS
# =====================================================

@catalog_bp.route('/locations', methods=['GET'])
def list_locations():
    return jsonify(catalog_service.list_locations(get_session()))


@catalog_bp.route('/locations', methods=['POST'])
def save_location():
    location = catalog_service.save_location(get_session(), request_data())
    return jsonify({'status': 'success', 'location': location})


@catalog_bp.route('/locations/<int:location_id>', methods=['DELETE'])
def delete_location(location_id: int):
    catalog_service.delete_location(get_session(), location_id)
    return jsonify({'status': 'success'})


@catalog_bp.route('/invoice-types', methods=['GET'])
def list_invoice_types():
    return jsonify(catalog_service.list_invoice_types(get_session()))
