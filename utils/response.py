from flask import jsonify


def json_response(message="success", data=None, code=200):
    resp = jsonify({"code": code, "message": message, "data": data})
    resp.status_code = code
    return resp


def page_data(items, total: int, page: int, per_page: int) -> dict:
    """列表接口统一的分页数据结构"""
    pages = (total + per_page - 1) // per_page if per_page else 0
    return {
        "items": items,
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": pages,
    }
