import unittest
from multisig_vault.rules import ApprovalRules

class TestApprovalRules(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.standard_rules = ApprovalRules.standard()
        self.strict_rules = ApprovalRules.strict()

    def test_standard_rules(self):
        """Test standard rule parameters"""
        rules = self.standard_rules

        self.assertEqual(rules.approval_window, 86_400)
        self.assertEqual(rules.timelock_period, 3_600)
        self.assertTrue(rules.disambiguate_ids)
        self.assertTrue(rules.enforce_owner_membership)

    def test_strict_rules(self):
        """Test strict rule parameters"""
        rules = self.strict_rules

        self.assertEqual(rules.approval_window, 3_600)
        self.assertEqual(rules.timelock_period, 600)
        self.assertFalse(rules.disambiguate_ids)

    def test_negative_durations_rejected(self):
        with self.assertRaises(ValueError):
            ApprovalRules(approval_window=-1)
        with self.assertRaises(ValueError):
            ApprovalRules(timelock_period=-1)

    def test_window_boundary(self):
        """Window closes strictly after the deadline"""
        rules = ApprovalRules(approval_window=60, timelock_period=30)

        self.assertEqual(rules.approval_deadline(100), 160)
        self.assertFalse(rules.window_lapsed(100, 160))
        self.assertTrue(rules.window_lapsed(100, 161))

    def test_timelock_boundary(self):
        """Timelock is satisfied at the deadline itself"""
        rules = ApprovalRules(approval_window=60, timelock_period=30)

        self.assertEqual(rules.timelock_deadline(100), 130)
        self.assertFalse(rules.timelock_elapsed(100, 129))
        self.assertTrue(rules.timelock_elapsed(100, 130))

    def test_from_dict_ignores_unknown_keys(self):
        rules = ApprovalRules.from_dict({
            'approval_window': 120,
            'timelock_period': 10,
            'min_signers': 2
        })

        self.assertEqual(rules.approval_window, 120)
        self.assertEqual(rules.timelock_period, 10)
        self.assertTrue(rules.disambiguate_ids)

    def test_from_env(self):
        rules = ApprovalRules.from_env({
            'VAULT_APPROVAL_WINDOW': '600',
            'VAULT_TIMELOCK_PERIOD': '45',
            'VAULT_DISAMBIGUATE_IDS': 'false',
            'VAULT_ENFORCE_OWNERS': 'yes'
        })

        self.assertEqual(rules.approval_window, 600)
        self.assertEqual(rules.timelock_period, 45)
        self.assertFalse(rules.disambiguate_ids)
        self.assertTrue(rules.enforce_owner_membership)

    def test_from_env_defaults(self):
        self.assertEqual(ApprovalRules.from_env({}), ApprovalRules())

    def test_to_dict(self):
        data = self.strict_rules.to_dict()
        self.assertEqual(ApprovalRules.from_dict(data), self.strict_rules)

if __name__ == '__main__':
    unittest.main()
