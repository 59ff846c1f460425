# Overview: Flask API routes for table service (mesas); orders live in memory only.

# backend/tpv/routes/tables.py
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import table_service
from ..services.runtime import get_runtime
from ..services.table_service import TableError
from ..validation import ValidationError, parse_sale_lines, require_fields, require_json_object


tables_bp = Blueprint("tables", __name__, url_prefix="/api/tables")


def _table_error_status(e: TableError) -> int:
    return 404 if "not found" in str(e) else 409


@tables_bp.get("")
def list_tables_route():
    zone = request.args.get("zone")
    tables = list(get_runtime().state.tables.values())
    if zone:
        tables = [t for t in tables if t.zone == zone]
    return jsonify({"tables": [t.to_dict() for t in tables]}), 200


@tables_bp.get("/logs")
def table_logs_route():
    logs = list(reversed(get_runtime().state.table_logs))
    return jsonify({"logs": [entry.to_dict() for entry in logs]}), 200


@tables_bp.post("/<table_id>/open")
@require_user
def open_table_route(table_id: str):
    data = request.get_json(silent=True) or {}
    try:
        table = table_service.open_table(
            get_runtime().state, table_id, g.current_user.id, temp_name=data.get("tempName")
        )
        return jsonify({"table": table.to_dict()}), 200
    except TableError as e:
        return jsonify({"error": str(e)}), _table_error_status(e)
    except Exception:
        current_app.logger.exception("Failed to open table")
        return jsonify({"error": "Internal server error"}), 500


@tables_bp.put("/<table_id>/order")
@require_user
def save_order_route(table_id: str):
    """
    Replace the table's in-progress order.

    Request body:
    {
        "items": [{"productId": "p_cana", "quantity": 2}]
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        runtime = get_runtime()
        lines = parse_sale_lines(data.get("items"), runtime.state.products)
        table = table_service.save_order(runtime.state, table_id, g.current_user.id, lines)
        return jsonify({"table": table.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TableError as e:
        return jsonify({"error": str(e)}), _table_error_status(e)
    except Exception:
        current_app.logger.exception("Failed to save table order")
        return jsonify({"error": "Internal server error"}), 500


@tables_bp.post("/<table_id>/bill")
@require_user
def request_bill_route(table_id: str):
    try:
        table = table_service.request_bill(get_runtime().state, table_id, g.current_user.id)
        return jsonify({"table": table.to_dict()}), 200
    except TableError as e:
        return jsonify({"error": str(e)}), _table_error_status(e)


@tables_bp.post("/<table_id>/rename")
@require_user
def rename_table_route(table_id: str):
    data = request.get_json(silent=True) or {}
    try:
        table = table_service.rename_table(
            get_runtime().state, table_id, g.current_user.id, data.get("tempName")
        )
        return jsonify({"table": table.to_dict()}), 200
    except TableError as e:
        return jsonify({"error": str(e)}), _table_error_status(e)


@tables_bp.post("/<table_id>/close")
@require_user
def close_table_route(table_id: str):
    try:
        table = table_service.close_table(get_runtime().state, table_id, g.current_user.id)
        return jsonify({"table": table.to_dict()}), 200
    except TableError as e:
        return jsonify({"error": str(e)}), _table_error_status(e)


@tables_bp.post("/move")
@require_user
def move_order_route():
    """
    Move an order to a free table.

    Request body:
    {
        "fromTableId": "t1",
        "toTableId": "t10"
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "fromTableId", "toTableId")
        source, dest = table_service.move_order(
            get_runtime().state, str(data["fromTableId"]), str(data["toTableId"]), g.current_user.id
        )
        return jsonify({"from": source.to_dict(), "to": dest.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TableError as e:
        return jsonify({"error": str(e)}), _table_error_status(e)
    except Exception:
        current_app.logger.exception("Failed to move table order")
        return jsonify({"error": "Internal server error"}), 500
