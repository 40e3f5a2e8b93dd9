#!/usr/bin/env python3
"""
Web interface for the Multi-Party Timelocked Vault
"""

from flask import Flask, request, jsonify
import os
import sys
import time

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from multisig_vault.vault import VaultOwner, MultiSigVault
from multisig_vault.rules import ApprovalRules
from multisig_vault.keys import OwnerKey
from multisig_vault.errors import (
    VaultError, NotFound, AlreadyExecuted, AlreadyApproved, DuplicateId,
    ApprovalWindowExpired, TransferFailed, InvalidTimestamp,
)

app = Flask(__name__)

# Global storage (in production, use proper database)
vaults = {}
vault_keys = {}  # Store generated owner keys separately

CONFLICT_ERRORS = (AlreadyExecuted, AlreadyApproved, DuplicateId,
                   ApprovalWindowExpired, TransferFailed)


def _now(data) -> int:
    value = data.get('now', time.time())
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidTimestamp(f"Invalid timestamp {value!r}")


def _error_response(error: VaultError):
    if isinstance(error, NotFound):
        status = 404
    elif isinstance(error, CONFLICT_ERRORS):
        status = 409
    else:
        status = 400
    body = {'success': False}
    body.update(error.as_dict())
    return jsonify(body), status


def _get_vault(vault_id):
    return vaults.get(vault_id)


@app.errorhandler(VaultError)
def handle_vault_error(error):
    app.logger.warning("Vault operation failed: %s", error)
    return _error_response(error)


@app.errorhandler(KeyError)
def handle_missing_field(error):
    return jsonify({'success': False, 'error': f"Missing field {error}"}), 400


@app.route('/')
def index():
    """Service summary"""
    return jsonify({'service': 'multisig_vault', 'vaults': len(vaults)})


@app.route('/api/create_vault', methods=['POST'])
def create_vault():
    """Create new multi-party vault"""
    data = request.json or {}

    owners = []
    keys_info = []
    for owner_data in data.get('owners', []):
        if 'pubkey' in owner_data:
            owners.append(VaultOwner(owner_data['pubkey'], owner_data.get('name', '')))
            continue

        private_hex, public_hex = OwnerKey.generate_key_pair()
        owners.append(VaultOwner(public_hex, owner_data.get('name', '')))
        keys_info.append({
            'name': owner_data.get('name', ''),
            'public_key': public_hex,
            'private_key': private_hex
        })

    try:
        if 'rules' in data:
            rules = ApprovalRules.from_dict(data['rules'])
        elif data.get('rules_type') == 'strict':
            rules = ApprovalRules.strict()
        else:
            rules = ApprovalRules.from_env()
        vault = MultiSigVault(owners, rules)
        if vault.vault_id in vaults:
            return jsonify({'success': False, 'vault_id': vault.vault_id,
                            'error': 'Vault with these owners already exists'}), 409
        if data.get('initial_balance'):
            vault.deposit(int(data['initial_balance']))
    except (ValueError, TypeError) as e:
        app.logger.error("Error creating vault: %s", e)
        return jsonify({'success': False, 'error': str(e)}), 400

    vault_id = vault.vault_id
    vaults[vault_id] = vault
    vault_keys[vault_id] = keys_info

    app.logger.info("Created vault %s with %d owners", vault_id, len(owners))

    body = vault.to_dict()
    body.update({'success': True, 'generated_keys': keys_info})
    return jsonify(body)


@app.route('/api/vault/<vault_id>')
def get_vault(vault_id):
    """Get vault information"""
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404
    return jsonify(vault.to_dict())


@app.route('/api/vault/<vault_id>/deposit', methods=['POST'])
def deposit(vault_id):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    data = request.json or {}
    try:
        balance = vault.deposit(int(data['amount']))
    except (KeyError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    return jsonify({'success': True, 'balance': balance,
                    'available_balance': vault.available_balance})


@app.route('/api/vault/<vault_id>/propose', methods=['POST'])
def propose(vault_id):
    """Propose an outbound transfer"""
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    data = request.json or {}
    tx_id = vault.propose(
        recipient=data['recipient'],
        amount=data['amount'],
        proposer=data['proposer'],
        now=_now(data)
    )
    return jsonify({
        'success': True,
        'transaction': vault.get_transaction(tx_id).to_dict(),
        'available_balance': vault.available_balance
    })


@app.route('/api/vault/<vault_id>/approve', methods=['POST'])
def approve(vault_id):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    data = request.json or {}
    outcome = vault.approve(data['transaction_id'], data['approver'], _now(data))
    body = outcome.to_dict()
    body['success'] = True
    return jsonify(body)


@app.route('/api/vault/<vault_id>/execute', methods=['POST'])
def execute(vault_id):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    data = request.json or {}
    tx = vault.execute(data['transaction_id'], _now(data))
    return jsonify({
        'success': True,
        'transaction': tx.to_dict(),
        'remaining_balance': vault.total_balance
    })


@app.route('/api/vault/<vault_id>/expire', methods=['POST'])
def expire(vault_id):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    data = request.json or {}
    tx = vault.expire(data['transaction_id'], _now(data))
    return jsonify({'success': True, 'transaction': tx.to_dict()})


@app.route('/api/vault/<vault_id>/sweep', methods=['POST'])
def sweep(vault_id):
    """Expire stale transactions and release their locks"""
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    data = request.json or {}
    expired = vault.sweep(_now(data))
    return jsonify({'success': True, 'expired': expired,
                    'available_balance': vault.available_balance})


@app.route('/api/vault/<vault_id>/transactions/<tx_id>')
def get_transaction(vault_id, tx_id):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404
    return jsonify(vault.get_transaction(tx_id).to_dict())


@app.route('/api/vault/<vault_id>/history/<proposer>')
def get_history(vault_id, proposer):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404
    return jsonify({'proposer': proposer, 'transactions': vault.get_history(proposer)})


@app.route('/api/vault/<vault_id>/events')
def get_events(vault_id):
    vault = _get_vault(vault_id)
    if vault is None:
        return jsonify({'error': 'Vault not found'}), 404

    tx_id = request.args.get('transaction_id')
    events = vault.sink.events(transaction_id=tx_id)
    return jsonify({'events': [e.to_dict() for e in events]})


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    app.run(
        host="0.0.0.0",
        port=port,
        debug=False
    )
