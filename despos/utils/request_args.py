"""Helpers to read request parameters."""
from typing import Any, Dict, Optional, Tuple

from flask import current_app, request

from despos.exceptions import ValidationError


def request_data() -> Dict[str, Any]:
    """JSON body if present, form data otherwise."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def int_arg(value: Any, name: str, required: bool = True) -> Optional[int]:
    """
    Raises:
        ValidationError: If the value is missing (when required) or not an integer
    """
    if value is None or value == '':
        if required:
            raise ValidationError(f'"{name}" is required')
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'"{name}" must be an integer')


def page_args() -> Tuple[int, Optional[int]]:
    """(page_number, item_count) from ?page=&count=, count defaulting to DEFAULT_PAGE_SIZE."""
    page_number = int_arg(request.args.get('page'), 'page', required=False) or 0
    item_count = int_arg(request.args.get('count'), 'count', required=False)
    if item_count is None:
        item_count = current_app.config.get('DEFAULT_PAGE_SIZE', 20)
    if page_number < 0 or item_count < 1:
        raise ValidationError('"page" must be >= 0 and "count" >= 1')
    return page_number, item_count
