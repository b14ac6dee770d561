import os
from unittest import TestCase
from unittest.mock import patch

from savekeeper.exceptions import BackupIOError
from savekeeper.util.wine.registry import WineRegistry

FIXTURES_PATH = os.path.join(os.path.dirname(__file__), 'fixtures')


class TestWineRegistry(TestCase):
    def setUp(self):
        self.registry_path = os.path.join(FIXTURES_PATH, 'user.reg')
        self.registry = WineRegistry(self.registry_path)

    def test_can_load_registry(self):
        self.assertEqual(len(self.registry.keys), 5)
        self.assertIn('Volatile Environment', self.registry.keys)

    def test_can_get_string_value(self):
        key = self.registry.keys['Control Panel/Keyboard']
        self.assertEqual(key.get_subkey('KeyboardSpeed'), '31')

    def test_can_get_expand_string_value(self):
        key = self.registry.keys['Environment']
        self.assertEqual(key.get_subkey('TEMP'), '%USERPROFILE%\\\\Temp')

    def test_other_values_are_none(self):
        key = self.registry.keys['Control Panel/Desktop']
        self.assertIsNone(key.get_subkey('CaretWidth'))
        self.assertIsNone(key.get_subkey('Nope'))

    def test_keeps_escaped_backslashes(self):
        key = self.registry.keys['Volatile Environment']
        self.assertEqual(key.get_subkey('USERPROFILE'), 'C:\\\\users\\\\steamuser')

    def test_missing_registry_is_empty(self):
        registry = WineRegistry(os.path.join(FIXTURES_PATH, 'nope.reg'))
        self.assertEqual(len(registry.keys), 0)

    def test_unreadable_registry(self):
        with patch('savekeeper.util.wine.registry.open', side_effect=PermissionError(13, 'denied'), create=True):
            with self.assertRaises(BackupIOError):
                WineRegistry(self.registry_path)
