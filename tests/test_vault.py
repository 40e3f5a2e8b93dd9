import unittest
import threading
from multisig_vault.vault import VaultOwner, MultiSigVault
from multisig_vault.rules import ApprovalRules
from multisig_vault.custody import InMemoryCustody
from multisig_vault.events import EventKind, EventLog, VaultEvent
from multisig_vault.keys import OwnerKey
from multisig_vault.errors import NotFound, VaultError, InsufficientBalance

class TestVault(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        # Generate test keys
        self.keys = []
        self.pubkeys = []
        for i in range(3):
            private_hex, public_hex = OwnerKey.generate_key_pair()
            self.keys.append(private_hex)
            self.pubkeys.append(public_hex)

        self.owners = [
            VaultOwner(self.pubkeys[0], "alice"),
            VaultOwner(self.pubkeys[1], "bob"),
            VaultOwner(self.pubkeys[2], "carol")
        ]
        self.rules = ApprovalRules(approval_window=3_600, timelock_period=60)

    def test_vault_creation(self):
        """Test vault creation and validation"""
        vault = MultiSigVault(self.owners, self.rules)
        self.assertEqual(len(vault.owners), 3)
        self.assertEqual(vault.quorum, 2)
        self.assertEqual(vault.total_balance, 0)
        self.assertEqual(vault.available_balance, 0)
        self.assertIsNotNone(vault.vault_id)

    def test_vault_id_independent_of_owner_order(self):
        first = MultiSigVault(self.owners, self.rules)
        second = MultiSigVault(list(reversed(self.owners)), self.rules)
        self.assertEqual(first.vault_id, second.vault_id)

    def test_owner_validation(self):
        """Test owner set validation"""
        with self.assertRaises(ValueError):
            MultiSigVault([], self.rules)

        with self.assertRaises(ValueError):
            MultiSigVault([self.owners[0], VaultOwner(self.pubkeys[0], "again")], self.rules)

        with self.assertRaises(ValueError):
            VaultOwner("")

    def test_default_rules(self):
        vault = MultiSigVault(self.owners)
        self.assertEqual(vault.rules, ApprovalRules.standard())

    def test_owner_checks(self):
        vault = MultiSigVault(self.owners, self.rules)
        self.assertTrue(vault.is_owner(self.pubkeys[0]))
        self.assertFalse(vault.is_owner("invalid_key"))

    def test_full_lifecycle(self):
        """Test propose, approve and reporting through the vault"""
        vault = MultiSigVault(self.owners, self.rules)
        vault.deposit(100)

        tx_id = vault.propose("recipient", 5, self.pubkeys[0], now=0)
        self.assertEqual(vault.locked_amount, 5)
        self.assertEqual(vault.available_balance, 95)
        self.assertEqual(vault.get_approval_count(tx_id), 1)
        self.assertEqual([tx.id for tx in vault.pending_transactions()], [tx_id])

        outcome = vault.approve(tx_id, self.pubkeys[1], now=61)
        self.assertTrue(outcome.executed)
        self.assertTrue(vault.has_approved(tx_id, self.pubkeys[1]))
        self.assertFalse(vault.has_approved(tx_id, self.pubkeys[2]))

        self.assertEqual(vault.total_balance, 95)
        self.assertEqual(vault.available_balance, 95)
        self.assertEqual(vault.get_history(self.pubkeys[0]), [tx_id])
        self.assertTrue(vault.get_transaction(tx_id).executed)

    def test_expire_and_sweep(self):
        vault = MultiSigVault(self.owners, self.rules)
        vault.deposit(100)
        first = vault.propose("recipient", 10, self.pubkeys[0], now=0)
        second = vault.propose("recipient", 20, self.pubkeys[1], now=0)

        vault.expire(first, now=3_601)
        self.assertEqual(vault.sweep(now=3_601), [second])
        self.assertEqual(vault.locked_amount, 0)
        self.assertEqual(vault.pending_transactions(), [])

    def test_errors_are_value_errors(self):
        vault = MultiSigVault(self.owners, self.rules)

        with self.assertRaises(InsufficientBalance) as ctx:
            vault.propose("recipient", 1, self.pubkeys[0], now=0)
        self.assertIsInstance(ctx.exception, ValueError)
        self.assertEqual(ctx.exception.as_dict()['code'], 'insufficient_balance')

        with self.assertRaises(NotFound):
            vault.get_transaction("missing")

    def test_deposit_waits_for_engine_lock(self):
        """Deposits are serialized with reservations"""
        vault = MultiSigVault(self.owners, self.rules)
        worker = threading.Thread(target=vault.deposit, args=(25,))

        with vault.engine.lock:
            worker.start()
            worker.join(timeout=0.2)
            self.assertTrue(worker.is_alive())
            self.assertEqual(vault.total_balance, 0)

        worker.join()
        self.assertEqual(vault.total_balance, 25)

    def test_deposit_emits_event(self):
        vault = MultiSigVault(self.owners, self.rules)

        self.assertEqual(vault.deposit(40), 40)
        self.assertEqual(vault.deposit(2), 42)

        deposits = vault.sink.events(kind=EventKind.DEPOSIT)
        self.assertEqual([e.fields['amount'] for e in deposits], [40, 2])
        self.assertIsNone(deposits[0].transaction_id)

    def test_custom_custody_and_sink(self):
        custody = InMemoryCustody(50)
        sink = EventLog()
        vault = MultiSigVault(self.owners, self.rules, custody=custody, sink=sink)

        vault.propose("recipient", 50, self.pubkeys[2], now=0)
        self.assertEqual(vault.available_balance, 0)
        self.assertEqual(len(sink.events(kind=EventKind.CREATED)), 1)

    def test_to_dict(self):
        vault = MultiSigVault(self.owners, self.rules)
        vault.deposit(10)
        tx_id = vault.propose("recipient", 4, self.pubkeys[0], now=0)

        data = vault.to_dict()
        self.assertEqual(data['quorum'], 2)
        self.assertEqual(data['locked_amount'], 4)
        self.assertEqual(data['available_balance'], 6)
        self.assertEqual(data['pending'], [tx_id])
        self.assertEqual(data['owners'][0]['label'], "alice")


class TestCustody(unittest.TestCase):

    def test_deposit_and_transfer(self):
        custody = InMemoryCustody()
        custody.deposit(10)

        self.assertTrue(custody.transfer("bob", 4))
        self.assertEqual(custody.total_balance, 6)
        self.assertFalse(custody.transfer("bob", 7))
        self.assertEqual(custody.total_balance, 6)

    def test_invalid_amounts(self):
        with self.assertRaises(ValueError):
            InMemoryCustody(-1)
        with self.assertRaises(ValueError):
            InMemoryCustody().deposit(0)

    def test_rejecting_recipient(self):
        custody = InMemoryCustody(10)
        custody.reject_recipient("bob")
        self.assertFalse(custody.transfer("bob", 1))

        custody.accept_recipient("bob")
        self.assertTrue(custody.transfer("bob", 1))
        self.assertEqual(len(custody.get_transfer_history()), 1)


class TestEventLog(unittest.TestCase):

    def test_filtering(self):
        log = EventLog()
        log.emit(VaultEvent(EventKind.CREATED, "a", {'amount': 1}))
        log.emit(VaultEvent(EventKind.APPROVED, "a"))
        log.emit(VaultEvent(EventKind.CREATED, "b"))

        self.assertEqual(len(log), 3)
        self.assertEqual(len(log.events(kind=EventKind.CREATED)), 2)
        self.assertEqual(len(log.events(transaction_id="a")), 2)
        self.assertEqual(log.events()[0].to_dict(),
                         {'kind': 'created', 'transaction_id': 'a', 'amount': 1})


class TestOwnerKey(unittest.TestCase):

    def test_compressed_public_key(self):
        private_hex, public_hex = OwnerKey.generate_key_pair()

        self.assertEqual(len(public_hex), 66)
        self.assertIn(public_hex[:2], ("02", "03"))
        self.assertEqual(len(private_hex), 64)

    def test_restore_from_private_key(self):
        key = OwnerKey()
        restored = OwnerKey(bytes.fromhex(key.get_private_key_hex()))

        self.assertEqual(restored.get_public_key_hex(), key.get_public_key_hex())
        self.assertEqual(restored.fingerprint(), key.fingerprint())
        self.assertEqual(len(key.fingerprint()), 8)

    def test_errors_share_base(self):
        self.assertTrue(issubclass(InsufficientBalance, VaultError))

if __name__ == '__main__':
    unittest.main()
