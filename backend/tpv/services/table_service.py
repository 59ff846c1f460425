"""
Table management.

STATUS FLOW:
- free -> occupied            open_table
- occupied -> awaiting_payment request_bill
- occupied/awaiting -> free   close_table, or a completed sale at the table
- move_order(a, b)            a must hold an order, b must be free; the cart
                              and temporary name move to b, a becomes free

Tables are local to the running session; they are not persisted.
Opening, saving an order (or asking for the bill), renaming and moving append
a TableLog entry; closing a table does not.
"""

from __future__ import annotations

import uuid

from ..entities import (
    TABLE_AWAITING_PAYMENT,
    TABLE_FREE,
    TABLE_OCCUPIED,
    SaleLine,
    Table,
    TableLog,
)
from tpv.time_utils import utcnow
from .runtime import PosState


class TableError(Exception):
    """Raised for table operation errors."""
    pass


def _get_table(state: PosState, table_id: str) -> Table:
    table = state.tables.get(table_id)
    if table is None:
        raise TableError(f"Table {table_id} not found")
    return table


def _log(state: PosState, user_id: str, action: str, details: str) -> TableLog:
    user = state.users.get(user_id)
    entry = TableLog(
        id=uuid.uuid4().hex[:9],
        timestamp=utcnow(),
        user_id=user_id,
        user_name=user.name if user else user_id,
        action=action,
        details=details,
    )
    state.table_logs.append(entry)
    return entry


def _label(table: Table) -> str:
    return f"{table.number} ({table.temp_name})" if table.temp_name else table.number


def open_table(state: PosState, table_id: str, user_id: str, temp_name: str | None = None) -> Table:
    table = _get_table(state, table_id)
    if table.status != TABLE_FREE:
        raise TableError(f"Table {table.number} is already in use")

    table.status = TABLE_OCCUPIED
    table.temp_name = temp_name or None
    table.current_order = []
    table.last_activity = utcnow()
    _log(state, user_id, "open", f"Mesa {_label(table)} abierta")
    return table


def save_order(state: PosState, table_id: str, user_id: str, lines: list[SaleLine]) -> Table:
    """Replace the table's in-progress order. Saving to a free table opens it."""
    table = _get_table(state, table_id)
    for line in lines:
        if line.quantity <= 0:
            raise TableError("Item quantities must be positive")

    table.current_order = list(lines)
    if table.status == TABLE_FREE:
        table.status = TABLE_OCCUPIED
    table.last_activity = utcnow()
    _log(state, user_id, "save", f"Comanda guardada en mesa {_label(table)} ({len(lines)} líneas)")
    return table


def request_bill(state: PosState, table_id: str, user_id: str) -> Table:
    table = _get_table(state, table_id)
    if table.status == TABLE_FREE:
        raise TableError(f"Table {table.number} has no open order")

    table.status = TABLE_AWAITING_PAYMENT
    table.last_activity = utcnow()
    _log(state, user_id, "save", f"Cuenta pedida en mesa {_label(table)}")
    return table


def rename_table(state: PosState, table_id: str, user_id: str, temp_name: str | None) -> Table:
    table = _get_table(state, table_id)
    old = _label(table)
    table.temp_name = temp_name or None
    table.last_activity = utcnow()
    _log(state, user_id, "rename", f"Mesa {old} renombrada a {_label(table)}")
    return table


def close_table(state: PosState, table_id: str, user_id: str) -> Table:
    """Free the table and drop its order without selling it."""
    table = _get_table(state, table_id)
    table.status = TABLE_FREE
    table.current_order = []
    table.temp_name = None
    table.last_activity = utcnow()
    return table


def move_order(state: PosState, from_id: str, to_id: str, user_id: str) -> tuple[Table, Table]:
    """
    Move an order to another table.

    Raises:
        TableError: Same table, source without order, or destination not free
    """
    if from_id == to_id:
        raise TableError("Source and destination are the same table")

    source = _get_table(state, from_id)
    dest = _get_table(state, to_id)

    if source.status == TABLE_FREE:
        raise TableError(f"Table {source.number} has no order to move")
    if dest.status != TABLE_FREE:
        raise TableError(f"Destination table {dest.number} must be free")

    now = utcnow()
    dest.status = TABLE_OCCUPIED
    dest.current_order = list(source.current_order)
    dest.temp_name = source.temp_name
    dest.last_activity = now

    source.status = TABLE_FREE
    source.current_order = []
    source.temp_name = None
    source.last_activity = now

    _log(state, user_id, "move", f"Comanda movida de mesa {source.number} a mesa {dest.number}")
    return source, dest
