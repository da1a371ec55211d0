"""
Tests for ledger aggregation and the settlement engine.
"""

import pytest

from accounter.ledger import LedgerAggregator
from accounter.models.ledger import LedgerEntry, LedgerSnapshot, UserTotal
from accounter.settlement import SettlementEngine


def snapshot_of(**totals) -> LedgerSnapshot:
    return LedgerAggregator().from_totals(totals.items())


class TestLedgerAggregator:
    """Tests for shaping per-user totals."""

    def test_sorts_users(self):
        """Test totals are put in user order regardless of input order."""
        snapshot = LedgerAggregator().from_totals([("carol", 10), ("alice", 20), ("bob", 5)])
        assert snapshot.users == ["alice", "bob", "carol"]
        assert snapshot.totals[0] == UserTotal(user="alice", total=20)

    def test_merges_duplicate_users(self):
        """Test repeated users are summed."""
        snapshot = LedgerAggregator().from_totals([("alice", 20), ("alice", 5)])
        assert snapshot.user_count == 1
        assert snapshot.raw_total == 25

    def test_from_entries(self):
        """Test grouping raw ledger rows."""
        entries = [
            LedgerEntry(id=1, timestamp="t", user="bob", item_name="Milk", cost=350),
            LedgerEntry(id=2, timestamp="t", user="alice", item_name="Bread", cost=250),
            LedgerEntry(id=3, timestamp="t", user="bob", item_name="Eggs", cost=400),
        ]
        snapshot = LedgerAggregator().from_entries(entries)
        assert snapshot.users == ["alice", "bob"]
        assert [t.total for t in snapshot.totals] == [250, 750]

    def test_empty(self):
        """Test an empty ledger gives an empty snapshot."""
        snapshot = LedgerAggregator().from_totals([])
        assert snapshot.is_empty
        assert snapshot.user_count == 0

    def test_snapshot_rejects_unsorted(self):
        """Test a snapshot cannot be built out of order."""
        with pytest.raises(ValueError, match="sorted"):
            LedgerSnapshot(totals=(
                UserTotal(user="bob", total=1),
                UserTotal(user="alice", total=1),
            ))


class TestSettlementEngine:
    """Tests for the settlement matrix."""

    def test_three_user_example(self):
        """Test the worked A/B/C example."""
        result = SettlementEngine().settle(snapshot_of(A=1000, B=500, C=1500))

        assert result.users == ["A", "B", "C"]
        assert [s.avg_contribution for s in result.settlements] == [333, 166, 500]
        assert result.matrix == [
            [0, -167, 167],
            [167, 0, 334],
            [-167, -334, 0],
        ]
        assert result.raw_total == 3000
        assert result.accumulated == 3000
        assert result.correction == 0

    def test_net_balance(self):
        """Test each user's distance from the fair share."""
        result = SettlementEngine().settle(snapshot_of(A=1000, B=500, C=1500))
        assert [s.net_balance for s in result.settlements] == [0, -500, 500]

    def test_single_user(self):
        """Test one user owes nobody anything."""
        result = SettlementEngine().settle(snapshot_of(alice=1234))

        settlement = result.settlements[0]
        assert settlement.avg_contribution == 1234
        assert settlement.balances == [0]
        assert settlement.net_balance == 0
        assert result.correction == 0

    def test_empty_ledger(self):
        """Test zero users gives an empty result, not an error."""
        result = SettlementEngine().settle(LedgerSnapshot())
        assert result.is_empty
        assert result.users == []
        assert result.matrix == []

    @pytest.mark.parametrize("totals", [
        {"a": 1, "b": 2},
        {"a": 100, "b": 0, "c": 7},
        {"a": 999, "b": 1, "c": 5, "d": 12345},
        {"x": 0, "y": 0},
    ])
    def test_antisymmetric_with_zero_diagonal(self, totals):
        """Test M[i][j] == -M[j][i] and a zero diagonal."""
        result = SettlementEngine().settle(snapshot_of(**totals))
        matrix = result.matrix
        n = len(matrix)

        for i in range(n):
            assert matrix[i][i] == 0
            for j in range(n):
                assert matrix[i][j] == -matrix[j][i]

    @pytest.mark.parametrize("totals", [
        {"a": 1, "b": 2},
        {"a": 100, "b": 0, "c": 7},
        {"a": 999, "b": 1, "c": 5, "d": 12345},
    ])
    def test_accumulated_matches_raw_total(self, totals):
        """Test the row-folded figure equals the raw total."""
        result = SettlementEngine().settle(snapshot_of(**totals))

        folded = sum(
            sum(s.balances) + s.total
            for s in result.settlements
        )
        assert folded == result.raw_total
        assert result.accumulated == result.raw_total

    def test_rows_follow_snapshot_order(self):
        """Test rows and columns use the same user order."""
        result = SettlementEngine().settle(snapshot_of(zed=300, amy=0))
        assert result.users == ["amy", "zed"]
        assert result.for_user("amy").balances == [0, 150]
        assert result.for_user("zed").balances == [-150, 0]
        assert result.for_user("nobody") is None


class TestRoundingCorrection:
    """Tests for the single-cell rounding correction."""

    def test_no_correction_when_balanced(self):
        """Test nothing changes when the figures agree."""
        matrix = [[0, 5], [-5, 0]]
        assert SettlementEngine.apply_correction(matrix, 100, 100) == 0
        assert matrix == [[0, 5], [-5, 0]]

    def test_difference_lands_on_last_cell(self):
        """Test the whole difference goes to the last user's self-balance."""
        matrix = [[0, 5], [-5, 0]]
        correction = SettlementEngine.apply_correction(matrix, 103, 100)

        assert correction == -3
        assert matrix == [[0, 5], [-5, -3]]

    def test_corrected_matrix_folds_to_raw_total(self):
        """Test the folded figure agrees after correction."""
        matrix = [[0, 1, 2], [-1, 0, 1], [-2, -1, 0]]
        totals = [10, 20, 30]
        accumulated = sum(sum(row) + t for row, t in zip(matrix, totals)) + 2

        SettlementEngine.apply_correction(matrix, accumulated, sum(totals))

        # The cell now absorbs the discrepancy of 2
        assert matrix[2][2] == -2
        assert matrix[0][0] == 0 and matrix[1][1] == 0
