# splitledger/app.py
import logging

from flask import Flask, current_app, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest, HTTPException

from splitledger.config import Config
from splitledger.ledger import apply_settlement, shares_from_dicts, summarize_expenses
from splitledger.settlement import (
    EMPTY_PARTICIPANT_POLICIES, Expense, ExpenseValidationError, Settlement, SettlementError,
    calculate_balances, calculate_settlements,
)

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=getattr(logging, app.config['LOG_LEVEL'], logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if app.config['EMPTY_PARTICIPANTS'] not in EMPTY_PARTICIPANT_POLICIES:
        raise ValueError(f"EMPTY_PARTICIPANTS must be one of {EMPTY_PARTICIPANT_POLICIES}")

    origins = app.config['CORS_ORIGINS']
    if origins == ['*']:
        origins = '*'
    CORS(app, resources={r"/api/*": {"origins": origins}})  # lets the React frontend talk to this backend

    register_routes(app)
    register_error_handlers(app)
    return app


def read_expenses(data):
    # Either a bare list or {"expenses": [...]}
    if isinstance(data, dict):
        data = data.get('expenses')
    if not isinstance(data, list):
        raise ExpenseValidationError("expected a list of expenses")

    # Convert JSON data into our Python objects
    expenses_list = []
    for index, item in enumerate(data):
        try:
            expenses_list.append(Expense.from_dict(item))
        except ExpenseValidationError as e:
            raise ExpenseValidationError(str(e), index)
    return expenses_list


def empty_participants_policy():
    policy = request.args.get('emptyParticipants', current_app.config['EMPTY_PARTICIPANTS'])
    if policy not in EMPTY_PARTICIPANT_POLICIES:
        raise ExpenseValidationError(f"emptyParticipants must be one of {', '.join(EMPTY_PARTICIPANT_POLICIES)}")
    return policy


def register_routes(app):

    @app.route('/api', methods=['GET'])
    def health_check():
        return jsonify({"status": "healthy", "message": "Backend is running!"})

    @app.route('/api/calculate', methods=['POST'])
    def calculate():
        expenses_list = read_expenses(request.get_json(force=True))
        balances, settlements = calculate_settlements(expenses_list, empty_participants_policy())

        body = {
            'balances': [b.to_dict() for b in balances],
            'settlements': [s.to_dict() for s in settlements],
        }
        if not balances:
            body['message'] = "No debts found!"
        return jsonify(body)

    @app.route('/api/balances', methods=['POST'])
    def balances():
        expenses_list = read_expenses(request.get_json(force=True))
        results = calculate_balances(expenses_list, empty_participants_policy())
        return jsonify({'balances': [b.to_dict() for b in results]})

    @app.route('/api/summary', methods=['POST'])
    def summary():
        expenses_list = read_expenses(request.get_json(force=True))
        return jsonify(summarize_expenses(expenses_list).to_dict())

    @app.route('/api/settle', methods=['POST'])
    def settle():
        data = request.get_json(force=True)
        if not isinstance(data, dict):
            raise SettlementError("expected an object with expenses and settlement")

        expenses_list = read_expenses(data.get('expenses'))
        settlement = Settlement.from_dict(data.get('settlement'))
        shares = shares_from_dicts(data.get('settledShares'))

        result = apply_settlement(expenses_list, settlement, shares, empty_participants_policy())
        logger.info("%s paid %s %.2f, closed %d expenses", settlement.from_person,
                    settlement.to_person, settlement.amount, len(result.newly_settled))
        return jsonify(result.to_dict())


def register_error_handlers(app):

    @app.errorhandler(ExpenseValidationError)
    @app.errorhandler(SettlementError)
    def handle_validation_error(e):
        logger.warning("Rejected request to %s: %s", request.path, e)
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(BadRequest)
    def handle_bad_request(e):
        return jsonify({"error": "Request body must be valid JSON"}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception("Unhandled error on %s", request.path)
        return jsonify({"error": "Internal server error"}), 500


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'], port=app.config['PORT'])
