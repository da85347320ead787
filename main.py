from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from revshare import AgentDirectory, InMemoryStore, TransactionLifecycleManager
from revshare.errors import NotFoundError
from revshare.models import AgentInput, AgentUpdate, TransactionInput, TransactionUpdate, utcnow
from revshare.output import OutputBuilder
import os
import logging
from decimal import InvalidOperation

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")


def create_app(store=None, clock=utcnow):
    """Build the API around a store (a fresh in-memory one by default)."""
    app = Flask(__name__)

    # Enable CORS for all routes (dashboard is served from another origin)
    CORS(app)

    store = store or InMemoryStore(clock=clock)
    directory = AgentDirectory(store)
    lifecycle = TransactionLifecycleManager(store, clock=clock)
    output = OutputBuilder()

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": str(e), "status": "not_found"}), 404

    @app.errorhandler(ValueError)
    @app.errorhandler(KeyError)
    @app.errorhandler(TypeError)
    @app.errorhandler(InvalidOperation)
    def handle_validation_error(e):
        # Validation errors (missing fields, invalid types or numbers, business rules)
        logger.error(f"Validation error: {str(e)}")
        return jsonify({"error": f"Validation error: {str(e)}", "status": "validation_failed"}), 400

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        # Unexpected errors - log details but return generic message
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred during processing", "status": "failed"}), 500

    def json_body() -> dict:
        data = request.get_json(force=True, silent=True)
        if not data or not isinstance(data, dict):
            raise ValueError("No input data provided")
        return data

    def not_found(kind, entity_id):
        return jsonify({"error": f"{kind} {entity_id} not found", "status": "not_found"}), 404

    @app.route("/api", methods=["GET"])
    def api_info():
        """API information endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Brokerage Revenue Share API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "endpoints": {
                "agents": "/agents [GET, POST]",
                "agent": "/agents/<id> [GET, PATCH, DELETE]",
                "roots": "/agents/root [GET]",
                "downline": "/agents/<id>/downline [GET]",
                "agent_transactions": "/agents/<id>/transactions [GET]",
                "agent_revenue_shares": "/agents/<id>/revenue-shares [GET]",
                "transactions": "/transactions [GET, POST]",
                "transaction": "/transactions/<id> [GET, PATCH, DELETE]",
                "transaction_revenue_shares": "/transactions/<id>/revenue-shares [GET]",
                "reprocess": "/transactions/<id>/reprocess [POST]",
                "revenue_shares": "/revenue-shares [GET]",
                "health": "/health [GET]"
            }
        }), 200

    @app.route("/health", methods=["GET"])
    def health():
        """Health check for monitoring"""
        return jsonify({"status": "healthy"}), 200

    # -------------------------------------------------------------------------
    # Agents
    # -------------------------------------------------------------------------

    @app.route("/agents", methods=["GET"])
    def list_agents():
        return jsonify({"agents": [output.agent(a) for a in directory.list_agents()]}), 200

    @app.route("/agents", methods=["POST"])
    def create_agent():
        agent = directory.create_agent(AgentInput.from_dict(json_body()))
        return jsonify(output.agent(agent)), 201

    @app.route("/agents/<int:agent_id>", methods=["GET"])
    def get_agent(agent_id):
        agent = directory.get_agent(agent_id)
        if agent is None:
            return not_found("Agent", agent_id)
        return jsonify(output.agent(agent)), 200

    @app.route("/agents/<int:agent_id>", methods=["PATCH"])
    def update_agent(agent_id):
        agent = directory.update_agent(agent_id, AgentUpdate.from_dict(json_body()))
        if agent is None:
            return not_found("Agent", agent_id)
        return jsonify(output.agent(agent)), 200

    @app.route("/agents/<int:agent_id>", methods=["DELETE"])
    def delete_agent(agent_id):
        if not directory.delete_agent(agent_id):
            return not_found("Agent", agent_id)
        return "", 204

    @app.route("/agents/root", methods=["GET"])
    def list_root_agents():
        return jsonify({"agents": [output.agent(a) for a in directory.list_roots()]}), 200

    @app.route("/agents/<int:agent_id>/downline", methods=["GET"])
    def agent_downline(agent_id):
        return jsonify(output.downline(directory.downline_tree(agent_id))), 200

    @app.route("/agents/<int:agent_id>/transactions", methods=["GET"])
    def agent_transactions(agent_id):
        transactions = directory.list_transactions(agent_id)
        return jsonify({"transactions": [output.transaction(t) for t in transactions]}), 200

    @app.route("/agents/<int:agent_id>/revenue-shares", methods=["GET"])
    def agent_revenue_shares(agent_id):
        if directory.get_agent(agent_id) is None:
            return not_found("Agent", agent_id)
        return jsonify(output.revenue_shares(store.list_agent_revenue_shares(agent_id))), 200

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @app.route("/transactions", methods=["GET"])
    def list_transactions():
        return jsonify({"transactions": [output.transaction(t) for t in store.list_transactions()]}), 200

    @app.route("/transactions", methods=["POST"])
    def create_transaction():
        data = json_body()
        logger.info(f"Creating transaction: {data.get('property_address', 'Unknown')}")
        transaction = lifecycle.create_transaction(TransactionInput.from_dict(data))
        body = output.transaction(transaction)
        body.update(output.revenue_shares(store.list_revenue_shares(transaction.id)))
        return jsonify(body), 201

    @app.route("/transactions/<int:transaction_id>", methods=["GET"])
    def get_transaction(transaction_id):
        transaction = store.get_transaction(transaction_id)
        if transaction is None:
            return not_found("Transaction", transaction_id)
        return jsonify(output.transaction(transaction)), 200

    @app.route("/transactions/<int:transaction_id>", methods=["PATCH"])
    def update_transaction(transaction_id):
        transaction = lifecycle.update_transaction(transaction_id, TransactionUpdate.from_dict(json_body()))
        if transaction is None:
            return not_found("Transaction", transaction_id)
        body = output.transaction(transaction)
        body.update(output.revenue_shares(store.list_revenue_shares(transaction_id)))
        return jsonify(body), 200

    @app.route("/transactions/<int:transaction_id>", methods=["DELETE"])
    def delete_transaction(transaction_id):
        if not lifecycle.delete_transaction(transaction_id):
            return not_found("Transaction", transaction_id)
        return "", 204

    @app.route("/transactions/<int:transaction_id>/revenue-shares", methods=["GET"])
    def transaction_revenue_shares(transaction_id):
        if store.get_transaction(transaction_id) is None:
            return not_found("Transaction", transaction_id)
        return jsonify(output.revenue_shares(store.list_revenue_shares(transaction_id))), 200

    @app.route("/transactions/<int:transaction_id>/reprocess", methods=["POST"])
    def reprocess_transaction(transaction_id):
        result = lifecycle.reprocess_transaction(transaction_id)
        if result is None:
            return not_found("Transaction", transaction_id)
        return jsonify(output.processing_result(result)), 200

    @app.route("/revenue-shares", methods=["GET"])
    def list_revenue_shares():
        body = output.revenue_shares(store.list_revenue_shares())
        body["pending_reprocessing"] = lifecycle.pending_reprocessing()
        return jsonify(body), 200

    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
