from flask import jsonify


def api_response(data=None, message=None, status=200, **extra):
    """Build the ``{success, message, data}`` envelope shared by every endpoint"""
    payload = {'success': True, 'message': message, 'data': data}
    payload.update(extra)
    return jsonify(payload), status


def pagination_meta(pagination):
    return {
        'page': pagination.page,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev,
    }
