#!/usr/bin/env python3
"""
Example: Embedding the vault in a host ledger with its own custody
"""

from multisig_vault.vault import VaultOwner, MultiSigVault
from multisig_vault.rules import ApprovalRules
from multisig_vault.keys import OwnerKey
from multisig_vault.errors import VaultError


class LedgerCustody:
    """Custody backed by a shared account ledger"""

    def __init__(self, ledger: dict, account: str):
        self.ledger = ledger
        self.account = account

    @property
    def total_balance(self) -> int:
        return self.ledger.get(self.account, 0)

    def transfer(self, recipient: str, amount: int) -> bool:
        if recipient.startswith("frozen:"):
            return False
        self.ledger[self.account] -= amount
        self.ledger[recipient] = self.ledger.get(recipient, 0) + amount
        return True


def main():
    print("=== Vault on a Host Ledger ===")
    print()

    ledger = {'treasury': 1_000}
    owners = [VaultOwner(OwnerKey().get_public_key_hex(), name)
              for name in ("Alice", "Bob", "Carol", "Dave")]
    rules = ApprovalRules(approval_window=600, timelock_period=120)
    vault = MultiSigVault(owners, rules, custody=LedgerCustody(ledger, 'treasury'))

    alice, bob, carol, dave = (o.pubkey for o in owners)
    print(f"   Quorum: {vault.quorum}-of-{len(owners)}")

    tx_id = vault.propose("supplier", 300, alice, now=1_000)
    vault.approve(tx_id, bob, now=1_010)
    outcome = vault.approve(tx_id, carol, now=1_020)
    print(f"   {tx_id} quorum reached, executed={outcome.executed}")

    # Nobody else needs to approve; a host scheduler retries execution later
    vault.execute(tx_id, now=1_120)
    print(f"   Ledger after execution: {ledger}")

    stale = vault.propose("contractor", 200, dave, now=2_000)
    print(f"   Locked while pending: {vault.locked_amount}")
    print(f"   Swept at t=2601: {vault.sweep(now=2_601)}")
    print(f"   Available balance: {vault.available_balance}")

    try:
        vault.approve(stale, alice, now=2_602)
    except VaultError as e:
        print(f"   ❌ {type(e).__name__}: {e}")

if __name__ == "__main__":
    main()
