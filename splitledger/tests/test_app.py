"""
Tests for the JSON API.
"""
import pytest

from splitledger.app import create_app
from splitledger.config import Config


DINNER = {'description': 'Dinner', 'amount': 100, 'paidBy': 'Alice', 'participants': ['Alice', 'Bob']}


def test_health_check(client):
    response = client.get('/api')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_calculate(client):
    response = client.post('/api/calculate', json=[DINNER])
    assert response.status_code == 200

    body = response.get_json()
    assert body['settlements'] == [{'from': 'Bob', 'to': 'Alice', 'amount': 50.0}]
    assert {b['person']: b['netBalance'] for b in body['balances']} == {'Alice': 50.0, 'Bob': -50.0}
    assert 'message' not in body


def test_calculate_accepts_wrapped_list_and_legacy_keys(client):
    response = client.post('/api/calculate', json={
        'expenses': [{'payer': 'Alice', 'amount': 30, 'involved': ['Alice', 'Bob', 'Carol']}],
    })
    body = response.get_json()
    assert [s['from'] for s in body['settlements']] == ['Bob', 'Carol']


def test_calculate_nothing_owed(client):
    response = client.post('/api/calculate', json=[dict(DINNER, settled=True)])
    body = response.get_json()

    assert response.status_code == 200
    assert body == {'balances': [], 'settlements': [], 'message': "No debts found!"}


def test_negative_amount_is_rejected(client):
    response = client.post('/api/calculate', json=[DINNER, dict(DINNER, amount=-5)])

    assert response.status_code == 400
    assert response.get_json()['error'].startswith("expense 1:")


def test_non_numeric_amount_is_rejected(client):
    response = client.post('/api/balances', json=[dict(DINNER, amount='a lot')])
    assert response.status_code == 400


def test_body_must_be_a_list(client):
    response = client.post('/api/calculate', json={'nope': True})
    assert response.status_code == 400


def test_invalid_json(client):
    response = client.post('/api/calculate', data='{not json', content_type='application/json')
    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_empty_participants_policy(client):
    lonely = dict(DINNER, participants=[])

    response = client.post('/api/calculate', json=[lonely])
    assert response.status_code == 200
    assert response.get_json()['balances'] == []

    response = client.post('/api/calculate?emptyParticipants=reject', json=[lonely])
    assert response.status_code == 400
    assert 'participants must not be empty' in response.get_json()['error']

    response = client.post('/api/calculate?emptyParticipants=whatever', json=[lonely])
    assert response.status_code == 400


def test_reject_policy_from_config():
    class RejectConfig(Config):
        TESTING = True
        EMPTY_PARTICIPANTS = 'reject'

    client = create_app(RejectConfig).test_client()
    response = client.post('/api/balances', json=[dict(DINNER, participants=[])])
    assert response.status_code == 400


def test_bad_policy_in_config():
    class BrokenConfig(Config):
        EMPTY_PARTICIPANTS = 'sometimes'

    with pytest.raises(ValueError):
        create_app(BrokenConfig)


def test_balances(client):
    response = client.post('/api/balances', json=[DINNER])
    balances = response.get_json()['balances']

    assert balances[1] == {'person': 'Bob', 'owes': {'Alice': 50.0}, 'owed': {}, 'netBalance': -50.0}


def test_summary(client):
    response = client.post('/api/summary', json=[DINNER, dict(DINNER, amount=20, paidBy='Bob', settled=True)])
    body = response.get_json()

    assert body['total'] == 120.0
    assert body['unsettledTotal'] == 100.0
    assert body['paidBy'] == {'Alice': 100.0}


def test_settle(client):
    expenses = [dict(DINNER, id='e1'), dict(DINNER, id='e2', amount=40, participants=['Alice', 'Carol'])]
    response = client.post('/api/settle', json={
        'expenses': expenses,
        'settlement': {'from': 'Bob', 'to': 'Alice', 'amount': 50},
    })
    body = response.get_json()

    assert response.status_code == 200
    assert body['newlySettled'] == ['e1']
    assert [e['settled'] for e in body['expenses']] == [True, False]
    assert body['settledShares'] == [{'expenseId': 'e1', 'participant': 'Bob', 'amount': 50.0}]
    assert body['unallocated'] == 0.0


def test_settle_with_earlier_shares(client):
    expenses = [dict(DINNER, id='e1', participants=['Alice', 'Bob', 'Carol'], amount=90)]
    response = client.post('/api/settle', json={
        'expenses': expenses,
        'settlement': {'from': 'Carol', 'to': 'Alice', 'amount': 30},
        'settledShares': [{'expenseId': 'e1', 'participant': 'Bob', 'amount': 30}],
    })
    assert response.get_json()['newlySettled'] == ['e1']


def test_settle_with_self_is_rejected(client):
    response = client.post('/api/settle', json={
        'expenses': [DINNER],
        'settlement': {'from': 'Alice', 'to': 'Alice', 'amount': 50},
    })
    assert response.status_code == 400


def test_settle_needs_an_object(client):
    response = client.post('/api/settle', json=[DINNER])
    assert response.status_code == 400


def test_unknown_route(client):
    response = client.get('/api/nowhere')
    assert response.status_code == 404
    assert 'error' in response.get_json()


def test_infinite_amount_is_rejected(client):
    response = client.post('/api/calculate', data='[{"paidBy": "Alice", "amount": 1e999, "participants": ["Alice", "Bob"]}]',
                           content_type='application/json')
    assert response.status_code == 400
    assert 'finite' in response.get_json()['error']


@pytest.mark.parametrize('change', [
    {'participants': 5},
    {'paidBy': {'name': 'Alice'}},
    {'settled': 'false'},
])
def test_wrongly_typed_fields_are_rejected(client, change):
    response = client.post('/api/calculate', json=[dict(DINNER, **change)])
    assert response.status_code == 400
    assert response.get_json()['error'].startswith("expense 0:")
