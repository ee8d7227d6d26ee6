"""
Preferences management for the radial blur tools.
Loads and saves blur and processing settings in preferences.ini.
"""

import os
import configparser
from typing import Dict, Any


class PreferencesManager:
    """Manages blur preferences with persistent storage."""

    def __init__(self, config_file: str = "preferences.ini"):
        """
        Initialize the preferences manager.

        Args:
            config_file: Path to the preferences file
        """
        self.config_file = config_file
        self.config = configparser.ConfigParser()
        self.defaults = {
            'blur': {
                'blur_size': '13',
                'clamp_channels': 'false',
                'normalization': 'count'
            },
            'processing': {
                'max_workers': '4'
            }
        }
        self.load_preferences()

    def load_preferences(self) -> Dict[str, Any]:
        """
        Load preferences from the config file, writing defaults if it is missing.

        Returns:
            Dictionary of loaded preferences
        """
        try:
            if os.path.exists(self.config_file):
                self.config.read(self.config_file)
                self._fill_missing_defaults()
                print(f"📁 Loaded preferences from {self.config_file}")
            else:
                print("📁 Preferences file not found, creating defaults")
                self._create_default_config()

            return self.get_all_preferences()

        except configparser.Error as e:
            print(f"❌ Error loading preferences: {e}")
            print("🔄 Using default preferences")
            self.config.clear()
            self._create_default_config()
            return self.get_all_preferences()

    def save_preferences(self, preferences: Dict[str, Any]) -> bool:
        """
        Replace the stored preferences and write them to disk.

        Args:
            preferences: Mapping of section name to {key: value}

        Returns:
            True if successful, False otherwise
        """
        try:
            self.config.clear()
            for section_name, section_data in preferences.items():
                self.config.add_section(section_name)
                for key, value in section_data.items():
                    self.config.set(section_name, key, self._format_value(value))

            with open(self.config_file, 'w') as f:
                self.config.write(f)

            print(f"💾 Saved preferences to {self.config_file}")
            return True

        except (OSError, configparser.Error) as e:
            print(f"❌ Error saving preferences: {e}")
            return False

    def get_preference(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a specific preference value.

        Args:
            section: Section name (e.g., 'blur', 'processing')
            key: Key name (e.g., 'blur_size', 'max_workers')
            default: Default value if not found

        Returns:
            Preference value converted to bool/int/float where possible, or default
        """
        if self.config.has_section(section) and self.config.has_option(section, key):
            return self._convert_value(self.config.get(section, key))
        return default

    def set_preference(self, section: str, key: str, value: Any):
        """Set a preference in memory; call save_preferences to persist it."""
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, self._format_value(value))

    def get_all_preferences(self) -> Dict[str, Any]:
        """Get all preferences as a nested dictionary of converted values."""
        preferences = {}
        for section_name in self.config.sections():
            preferences[section_name] = {}
            for key in self.config.options(section_name):
                value = self.config.get(section_name, key)
                preferences[section_name][key] = self._convert_value(value)

        return preferences

    def _create_default_config(self):
        """Create default configuration file."""
        self._fill_missing_defaults()
        try:
            with open(self.config_file, 'w') as f:
                self.config.write(f)
            print(f"📝 Created default preferences file: {self.config_file}")
        except OSError as e:
            print(f"❌ Error creating default config: {e}")

    def _fill_missing_defaults(self):
        for section_name, section_data in self.defaults.items():
            if not self.config.has_section(section_name):
                self.config.add_section(section_name)
            for key, value in section_data.items():
                if not self.config.has_option(section_name, key):
                    self.config.set(section_name, key, value)

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)

    @staticmethod
    def _convert_value(value: str) -> Any:
        """
        Convert string value back to appropriate type.

        Args:
            value: String value from config file

        Returns:
            Converted value
        """
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value
