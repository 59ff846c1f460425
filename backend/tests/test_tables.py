"""
Table service tests.

Verifies:
- Status flow free -> occupied -> awaiting_payment -> free
- Moving an order needs an occupied source and a free destination
- Open, save, rename and move are logged with the acting user's name; close is not
"""

import pytest

from tpv.entities import SaleLine, TABLE_AWAITING_PAYMENT, TABLE_FREE, TABLE_OCCUPIED
from tpv.services import table_service
from tpv.services.runtime import PosState
from tpv.services.table_service import TableError


@pytest.fixture
def state():
    return PosState.seeded()


def _order():
    return [SaleLine("p_cana", 2, 180), SaleLine("p_racion_patatas", 1, 550)]


class TestTableFlow:

    def test_open_save_and_request_bill(self, state):
        table = table_service.open_table(state, "t1", "u2", temp_name="Familia García")
        assert table.status == TABLE_OCCUPIED
        assert table.temp_name == "Familia García"

        table_service.save_order(state, "t1", "u2", _order())
        assert len(table.current_order) == 2

        table_service.request_bill(state, "t1", "u2")
        assert table.status == TABLE_AWAITING_PAYMENT
        assert table.last_activity is not None

    def test_open_busy_table_is_rejected(self, state):
        table_service.open_table(state, "t1", "u2")

        with pytest.raises(TableError):
            table_service.open_table(state, "t1", "u3")

    def test_unknown_table(self, state):
        with pytest.raises(TableError, match="not found"):
            table_service.open_table(state, "t404", "u2")

    def test_saving_to_free_table_opens_it(self, state):
        table = table_service.save_order(state, "b1", "u2", _order())

        assert table.status == TABLE_OCCUPIED

    def test_bill_on_free_table_is_rejected(self, state):
        with pytest.raises(TableError):
            table_service.request_bill(state, "t2", "u2")

    def test_close_drops_order(self, state):
        table_service.save_order(state, "t3", "u2", _order())

        table = table_service.close_table(state, "t3", "u2")

        assert table.status == TABLE_FREE
        assert table.current_order == []

    def test_rename(self, state):
        table_service.open_table(state, "t4", "u2")
        table = table_service.rename_table(state, "t4", "u2", "Mesa Cumple")

        assert table.temp_name == "Mesa Cumple"


class TestMoveOrder:

    def test_move_to_free_table(self, state):
        table_service.open_table(state, "t1", "u2", temp_name="Pareja")
        table_service.save_order(state, "t1", "u2", _order())

        source, dest = table_service.move_order(state, "t1", "t10", "u2")

        assert source.status == TABLE_FREE
        assert source.current_order == []
        assert source.temp_name is None
        assert dest.status == TABLE_OCCUPIED
        assert dest.temp_name == "Pareja"
        assert [line.product_id for line in dest.current_order] == ["p_cana", "p_racion_patatas"]

    def test_move_to_occupied_table_is_rejected(self, state):
        table_service.save_order(state, "t1", "u2", _order())
        table_service.save_order(state, "t2", "u2", _order())

        with pytest.raises(TableError):
            table_service.move_order(state, "t1", "t2", "u2")

        assert len(state.tables["t1"].current_order) == 2

    def test_move_from_free_table_is_rejected(self, state):
        with pytest.raises(TableError):
            table_service.move_order(state, "t1", "t2", "u2")

    def test_move_to_same_table_is_rejected(self, state):
        table_service.save_order(state, "t1", "u2", _order())

        with pytest.raises(TableError):
            table_service.move_order(state, "t1", "t1", "u2")


class TestTableLog:

    def test_actions_are_logged_with_user_name(self, state):
        table_service.open_table(state, "t1", "u2")
        table_service.save_order(state, "t1", "u2", _order())
        table_service.rename_table(state, "t1", "u3", "VIP")
        table_service.move_order(state, "t1", "t11", "u1")

        assert [entry.action for entry in state.table_logs] == ["open", "save", "rename", "move"]
        assert state.table_logs[0].user_name == "Laura"
        assert state.table_logs[2].user_name == "Marcos"
        assert "T2" in state.table_logs[3].details

    def test_closing_a_table_is_not_logged(self, state):
        table_service.open_table(state, "t2", "u2")
        table_service.close_table(state, "t2", "u2")

        assert [entry.action for entry in state.table_logs] == ["open"]
