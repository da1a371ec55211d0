"""
Settlement Engine

Turns per-user lifetime totals into a matrix of pairwise balances.

For N users, each user's average contribution is avg(u) = total(u) // N and
the balance of user i towards user j is M[i][j] = avg(j) - avg(i). Row i is
what user i is owed (positive) or owes (negative) against every other user.

Floor division loses up to N-1 minor units. The engine keeps a running
figure, built row by row as sum(M[i]) + total(i), and if it does not match
the exact sum of totals the whole difference is put on one cell: the last
user's self-balance M[N-1][N-1].
Downstream readers of the settlement expect the fix-up in that cell.

The engine is a pure function of its snapshot: no I/O, no shared state.
"""

from accounter.models.ledger import (
    LedgerSnapshot,
    SettlementResult,
    UserSettlement,
)


class SettlementEngine:
    """Computes the settlement matrix for a ledger snapshot."""

    @staticmethod
    def apply_correction(
        matrix: list[list[int]],
        accumulated: int,
        raw_total: int,
    ) -> int:
        """
        Reconcile the folded matrix figure with the exact total.

        Puts the whole difference on the last diagonal cell, in place.

        The amount added is raw_total - accumulated, so that the folded
        figure equals raw_total afterwards. Adding accumulated - raw_total
        instead would double the gap rather than close it.

        Returns:
            The amount added to M[N-1][N-1] (0 if none was needed)
        """
        if accumulated == raw_total:
            return 0
        correction = raw_total - accumulated
        matrix[-1][-1] += correction
        return correction

    def settle(self, snapshot: LedgerSnapshot) -> SettlementResult:
        """
        Compute the settlement for every user of the snapshot.

        An empty snapshot yields an empty result.
        """
        if snapshot.is_empty:
            return SettlementResult()

        totals = snapshot.totals
        n = len(totals)
        averages = [t.total // n for t in totals]
        raw_total = snapshot.raw_total

        matrix = []
        accumulated = 0
        for i, user_total in enumerate(totals):
            row = [averages[j] - averages[i] for j in range(n)]
            matrix.append(row)
            accumulated += sum(row) + user_total.total

        correction = self.apply_correction(matrix, accumulated, raw_total)

        fair_share = raw_total // n
        settlements = [
            UserSettlement(
                user=user_total.user,
                total=user_total.total,
                avg_contribution=averages[i],
                balances=matrix[i],
                net_balance=user_total.total - fair_share,
            )
            for i, user_total in enumerate(totals)
        ]

        return SettlementResult(
            users=snapshot.users,
            settlements=settlements,
            raw_total=raw_total,
            accumulated=accumulated + correction,
            correction=correction,
        )
