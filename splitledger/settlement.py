# splitledger/settlement.py
"""Balance calculation and settlement suggestions for shared expenses.

Amounts are plain floats. Rounding only happens on the settlement amounts
handed back to the caller; anything below EPSILON is treated as zero.
"""

import logging
import math

logger = logging.getLogger(__name__)

EPSILON = 0.01

EMPTY_DEFAULT = 'default'
EMPTY_REJECT = 'reject'
EMPTY_PARTICIPANT_POLICIES = (EMPTY_DEFAULT, EMPTY_REJECT)


class ExpenseValidationError(ValueError):
    def __init__(self, message, index=None):
        if index is not None:
            message = f"expense {index}: {message}"
        super().__init__(message)
        self.index = index


class SettlementError(ValueError):
    pass


class Expense:
    def __init__(self, paid_by, amount, participants, description='',
                 settled=False, id=None, date=None):
        self.paid_by = paid_by
        self.amount = amount
        self.participants = participants
        self.description = description
        self.settled = settled
        self.id = id
        self.date = date

    @classmethod
    def from_dict(cls, data):
        """Build an expense from a JSON-style mapping.

        Accepts the camelCase keys the front end sends (``paidBy``) as well
        as the older ``payer``/``involved`` calculate payload.
        """
        if not isinstance(data, dict):
            raise ExpenseValidationError("expense must be an object")

        paid_by = data.get('paidBy', data.get('paid_by', data.get('payer')))
        if paid_by is not None and not isinstance(paid_by, str):
            raise ExpenseValidationError(f"paidBy must be a string, got {paid_by!r}")

        participants = data.get('participants', data.get('involved'))
        if participants is None:
            participants = []
        if isinstance(participants, str):
            participants = [participants]
        if not isinstance(participants, list) or not all(isinstance(p, str) for p in participants):
            raise ExpenseValidationError(f"participants must be a list of names, got {participants!r}")

        settled = data.get('settled', False)
        if not isinstance(settled, bool):
            raise ExpenseValidationError(f"settled must be true or false, got {settled!r}")

        try:
            amount = float(data.get('amount'))
        except (TypeError, ValueError):
            raise ExpenseValidationError(f"amount must be a number, got {data.get('amount')!r}")

        return cls(
            paid_by=paid_by,
            amount=amount,
            participants=list(participants),
            description=data.get('description', ''),
            settled=settled,
            id=data.get('id', data.get('_id')),
            date=data.get('date'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'amount': self.amount,
            'paidBy': self.paid_by,
            'participants': list(self.participants),
            'settled': self.settled,
            'date': self.date,
        }

    def copy(self, **changes):
        fields = {
            'paid_by': self.paid_by,
            'amount': self.amount,
            'participants': list(self.participants),
            'description': self.description,
            'settled': self.settled,
            'id': self.id,
            'date': self.date,
        }
        fields.update(changes)
        return Expense(**fields)

    def __repr__(self):
        return f"Expense({self.paid_by!r}, {self.amount!r}, {self.participants!r}, settled={self.settled!r})"


class Balance:
    def __init__(self, person):
        self.person = person
        self.owes = {}   # creditor -> amount
        self.owed = {}   # debtor -> amount
        self.net_balance = 0.0

    def to_dict(self):
        return {
            'person': self.person,
            'owes': dict(self.owes),
            'owed': dict(self.owed),
            'netBalance': self.net_balance,
        }

    def __repr__(self):
        return f"Balance({self.person!r}, net_balance={self.net_balance!r})"


class Settlement:
    def __init__(self, from_person, to_person, amount):
        self.from_person = from_person
        self.to_person = to_person
        self.amount = amount

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise SettlementError("settlement must be an object")
        try:
            amount = float(data.get('amount'))
        except (TypeError, ValueError):
            raise SettlementError(f"amount must be a number, got {data.get('amount')!r}")
        settlement = cls(data.get('from'), data.get('to'), amount)
        settlement.validate()
        return settlement

    def validate(self):
        if not self.from_person or not self.to_person:
            raise SettlementError("settlement needs both 'from' and 'to'")
        if self.from_person == self.to_person:
            raise SettlementError(f"{self.from_person} cannot settle with themselves")
        if not isinstance(self.from_person, str) or not isinstance(self.to_person, str):
            raise SettlementError("settlement parties must be names")
        if not math.isfinite(self.amount) or self.amount <= 0:
            raise SettlementError("settlement amount must be a finite positive number")

    def to_dict(self):
        return {'from': self.from_person, 'to': self.to_person, 'amount': self.amount}

    def __str__(self):
        return f"{self.from_person} owes {self.to_person} ${self.amount:.2f}"

    def __repr__(self):
        return f"Settlement({self.from_person!r}, {self.to_person!r}, {self.amount!r})"

    def __eq__(self, other):
        if not isinstance(other, Settlement):
            return NotImplemented
        return (self.from_person, self.to_person, self.amount) == \
            (other.from_person, other.to_person, other.amount)


def participants_for(expense, empty_participants=EMPTY_DEFAULT, index=None):
    """Validate an expense and return its de-duplicated participant list."""
    if empty_participants not in EMPTY_PARTICIPANT_POLICIES:
        raise ValueError(f"unknown empty-participants policy {empty_participants!r}")
    if not expense.paid_by:
        raise ExpenseValidationError("paidBy is required", index)
    if not isinstance(expense.paid_by, str):
        raise ExpenseValidationError(f"paidBy must be a string, got {expense.paid_by!r}", index)
    if isinstance(expense.amount, bool) or not isinstance(expense.amount, (int, float)):
        raise ExpenseValidationError(f"amount must be a number, got {expense.amount!r}", index)
    if not math.isfinite(expense.amount) or expense.amount < 0:
        raise ExpenseValidationError(f"amount must be a finite non-negative number, got {expense.amount}", index)
    if not all(isinstance(p, str) for p in expense.participants):
        raise ExpenseValidationError(f"participants must be names, got {expense.participants!r}", index)

    participants = list(dict.fromkeys(p for p in expense.participants if p))
    if not participants:
        if empty_participants == EMPTY_REJECT:
            raise ExpenseValidationError("participants must not be empty", index)
        # Payer carries the whole cost alone
        participants = [expense.paid_by]
    return participants


def calculate_balances(expenses, empty_participants=EMPTY_DEFAULT):
    """Net out who owes whom across the unsettled expenses.

    Returns one Balance per person with any recorded debt or credit, in the
    order people first appear in ``expenses``.
    """
    expenses = list(expenses)
    involved = [participants_for(exp, empty_participants, index) for index, exp in enumerate(expenses)]

    # 1. Everyone mentioned anywhere gets an entry, settled or not
    balances = {}
    for exp, participants in zip(expenses, involved):
        for person in [exp.paid_by] + participants:
            if person not in balances: balances[person] = Balance(person)

    # 2. Each non-payer owes the payer an even split
    for exp, participants in zip(expenses, involved):
        if exp.settled:
            continue

        split_amount = exp.amount / len(participants)
        payer = balances[exp.paid_by]
        for person in participants:
            if person == exp.paid_by:
                continue
            debtor = balances[person]
            debtor.owes[exp.paid_by] = debtor.owes.get(exp.paid_by, 0.0) + split_amount
            payer.owed[person] = payer.owed.get(person, 0.0) + split_amount

    # 3. Net Balances
    for balance in balances.values():
        balance.net_balance = sum(balance.owed.values()) - sum(balance.owes.values())

    results = [b for b in balances.values() if b.owes or b.owed]
    logger.debug("Computed %d balances from %d expenses", len(results), len(expenses))
    return results


def suggest_settlements(balances):
    """Greedy plan of payments that brings every net balance to zero.

    Largest creditor is matched with the largest debtor until one side runs
    out. This is not guaranteed to be the fewest possible payments.
    """
    # 1. Separate Debtors and Creditors (working copies, callers keep theirs)
    creditors = [{'person': b.person, 'amount': b.net_balance} for b in balances if b.net_balance > 0]
    debtors = [{'person': b.person, 'amount': b.net_balance} for b in balances if b.net_balance < 0]

    creditors.sort(key=lambda x: x['amount'], reverse=True)
    debtors.sort(key=lambda x: x['amount'])

    # 2. Match them up
    settlements = []
    i = 0
    j = 0

    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        amount = min(creditor['amount'], abs(debtor['amount']))
        if amount > EPSILON:
            settlements.append(Settlement(debtor['person'], creditor['person'], round(amount, 2)))

        creditor['amount'] -= amount
        debtor['amount'] += amount

        if creditor['amount'] < EPSILON: i += 1
        if abs(debtor['amount']) < EPSILON: j += 1

    logger.debug("Suggested %d settlements for %d creditors and %d debtors",
                 len(settlements), len(creditors), len(debtors))
    return settlements


def calculate_settlements(expenses, empty_participants=EMPTY_DEFAULT):
    balances = calculate_balances(expenses, empty_participants)
    return balances, suggest_settlements(balances)
