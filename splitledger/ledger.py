# splitledger/ledger.py
"""Applying a confirmed settlement to the expense list, and dashboard totals.

A settlement pays off whole shares: one participant's split of one expense
paid by the settlement's recipient. An expense only counts as settled once
every non-payer share of it has been paid.
"""

import logging

from splitledger.settlement import EMPTY_DEFAULT, EPSILON, SettlementError, participants_for

logger = logging.getLogger(__name__)


class SettledShare:
    def __init__(self, expense_id, participant, amount):
        self.expense_id = expense_id
        self.participant = participant
        self.amount = amount

    @property
    def key(self):
        return (self.expense_id, self.participant)

    def to_dict(self):
        return {'expenseId': self.expense_id, 'participant': self.participant, 'amount': self.amount}

    def __repr__(self):
        return f"SettledShare({self.expense_id!r}, {self.participant!r}, {self.amount!r})"


class SettlementApplication:
    def __init__(self, expenses, settled_shares, newly_settled, unallocated):
        self.expenses = expenses
        self.settled_shares = settled_shares      # every share paid so far
        self.newly_settled = newly_settled        # ids of expenses this settlement closed
        self.unallocated = unallocated

    def to_dict(self):
        return {
            'expenses': [exp.to_dict() for exp in self.expenses],
            'settledShares': [share.to_dict() for share in self.settled_shares],
            'newlySettled': list(self.newly_settled),
            'unallocated': self.unallocated,
        }


class ExpenseSummary:
    def __init__(self, total=0.0, unsettled_total=0.0, settled_count=0, unsettled_count=0, paid_by=None):
        self.total = total
        self.unsettled_total = unsettled_total
        self.settled_count = settled_count
        self.unsettled_count = unsettled_count
        self.paid_by = paid_by if paid_by is not None else {}

    def to_dict(self):
        return {
            'total': round(self.total, 2),
            'unsettledTotal': round(self.unsettled_total, 2),
            'settledCount': self.settled_count,
            'unsettledCount': self.unsettled_count,
            'paidBy': {person: round(amount, 2) for person, amount in self.paid_by.items()},
        }


def expense_key(expense, index):
    return expense.id if expense.id is not None else index


def apply_settlement(expenses, settlement, settled_shares=(), empty_participants=EMPTY_DEFAULT):
    """Pay off the shares ``settlement`` covers and mark finished expenses settled.

    ``settled_shares`` are shares paid by earlier settlements. Shares are
    taken whole in expense order, skipping any larger than what is left.
    A suggestion from ``suggest_settlements`` is a net amount, so it often
    matches no single share and comes back entirely as ``unallocated``.
    Nothing passed in is modified.
    """
    settlement.validate()
    expenses = list(expenses)
    shares = list(settled_shares)
    paid = {share.key for share in shares}
    remaining = settlement.amount

    # 1. Pay off the debtor's shares of the creditor's expenses
    for index, exp in enumerate(expenses):
        participants = participants_for(exp, empty_participants, index)
        if exp.settled or exp.paid_by != settlement.to_person:
            continue
        if settlement.from_person not in participants:
            continue

        key = (expense_key(exp, index), settlement.from_person)
        if key in paid:
            continue

        share = exp.amount / len(participants)
        if share > remaining + EPSILON:
            continue
        shares.append(SettledShare(key[0], settlement.from_person, round(share, 2)))
        paid.add(key)
        remaining -= share

    # 2. Close expenses whose every non-payer share is paid
    updated = []
    newly_settled = []
    for index, exp in enumerate(expenses):
        if exp.settled:
            updated.append(exp)
            continue
        participants = participants_for(exp, empty_participants, index)
        exp_id = expense_key(exp, index)
        debtors = [p for p in participants if p != exp.paid_by]
        if debtors and all((exp_id, p) in paid for p in debtors):
            updated.append(exp.copy(settled=True))
            newly_settled.append(exp_id)
        else:
            updated.append(exp)

    unallocated = round(max(remaining, 0.0), 2)
    if unallocated >= EPSILON:
        logger.warning("%s left over after settling %s -> %s",
                       unallocated, settlement.from_person, settlement.to_person)
    logger.debug("Settlement %r closed %d expenses", settlement, len(newly_settled))
    return SettlementApplication(updated, shares, newly_settled, unallocated if unallocated >= EPSILON else 0.0)


def summarize_expenses(expenses):
    summary = ExpenseSummary()
    for exp in expenses:
        summary.total += exp.amount
        if exp.settled:
            summary.settled_count += 1
            continue
        summary.unsettled_count += 1
        summary.unsettled_total += exp.amount
        summary.paid_by[exp.paid_by] = summary.paid_by.get(exp.paid_by, 0.0) + exp.amount
    return summary


def shares_from_dicts(items):
    shares = []
    for item in items or []:
        if not isinstance(item, dict):
            raise SettlementError("settled shares must be objects")
        shares.append(SettledShare(item.get('expenseId'), item.get('participant'), item.get('amount', 0.0)))
    return shares
