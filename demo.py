#!/usr/bin/env python3
"""
Complete demo of the Multi-Party Timelocked Vault
"""

from multisig_vault.vault import VaultOwner, MultiSigVault
from multisig_vault.rules import ApprovalRules
from multisig_vault.keys import OwnerKey
from multisig_vault.events import EventKind
from multisig_vault.errors import VaultError


def main():
    print("=" * 60)
    print("🏦 MULTI-PARTY TIMELOCKED VAULT - COMPLETE DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Setting up vault owners")
    print("-" * 40)

    participants = []
    for name in ["Alice", "Bob", "Carol"]:
        private_hex, public_hex = OwnerKey.generate_key_pair()
        participants.append({
            'name': name,
            'private_key': private_hex,
            'public_key': public_hex
        })
        print(f"✅ {name}: {public_hex[:16]}...")

    alice, bob, carol = (p['public_key'] for p in participants)
    print()

    # Step 2: Create Vault
    print("🏗️  STEP 2: Creating vault")
    print("-" * 40)

    owners = [VaultOwner(p['public_key'], p['name']) for p in participants]
    rules = ApprovalRules(approval_window=3_600, timelock_period=60)
    vault = MultiSigVault(owners, rules)
    vault.deposit(100)

    print(f"✅ Vault ID: {vault.vault_id}")
    print(f"✅ Balance: {vault.total_balance}")
    print(f"✅ Rules: {vault.quorum}-of-{len(owners)} approvals, "
          f"{rules.timelock_period}s timelock, {rules.approval_window}s approval window")
    print()

    # Step 3: Lifecycle scenarios
    print("💰 STEP 3: Transaction lifecycle")
    print("-" * 40)

    print("Test 1: Quorum reached after the timelock executes immediately")
    tx1 = vault.propose("recipient-1", 5, alice, now=0)
    outcome = vault.approve(tx1, bob, now=61)
    print(f"   ✅ {tx1}: approvals={outcome.approvals} executed={outcome.executed}")
    print(f"   Balance now {vault.total_balance}, locked {vault.locked_amount}")

    print("Test 2: Quorum reached before the timelock defers execution")
    tx2 = vault.propose("recipient-2", 10, alice, now=100)
    outcome = vault.approve(tx2, carol, now=130)
    print(f"   ⏳ deferred: {outcome.deferred_reason}")
    vault.execute(tx2, now=160)
    print(f"   ✅ executed at t=160, balance {vault.total_balance}")

    print("Test 3: Approval after the window closes expires the transaction")
    tx3 = vault.propose("recipient-3", 20, bob, now=200)
    print(f"   Locked while pending: {vault.locked_amount}")
    try:
        vault.approve(tx3, carol, now=200 + rules.approval_window + 1)
    except VaultError as e:
        print(f"   ❌ {type(e).__name__}: {e}")
    print(f"   Locked after expiry: {vault.locked_amount}")

    print("Test 4: Over-commitment is rejected")
    try:
        vault.propose("recipient-4", vault.available_balance + 1, carol, now=300)
    except VaultError as e:
        print(f"   ❌ {type(e).__name__}: {e}")

    print("Test 5: Double approval is rejected")
    tx5 = vault.propose("recipient-5", 1, carol, now=400)
    try:
        vault.approve(tx5, carol, now=401)
    except VaultError as e:
        print(f"   ❌ {type(e).__name__}: {e}")
    print()

    # Step 4: Reporting
    print("📜 STEP 4: Reporting")
    print("-" * 40)
    for p in participants:
        print(f"   {p['name']} proposed: {vault.get_history(p['public_key'])}")
    for kind in EventKind:
        print(f"   {kind.value}: {len(vault.sink.events(kind=kind))} event(s)")
    print(f"   Available balance: {vault.available_balance}")
    print()
    print("🎉 Demo complete")


if __name__ == "__main__":
    main()
