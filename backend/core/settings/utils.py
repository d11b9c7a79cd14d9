"""
Utility functions for Django settings configuration.

Environment-specific configuration loading built on python-decouple.
"""

from pathlib import Path

from decouple import Config, RepositoryEnv
from decouple import config as default_config

ENV_FILES = {
    "development": ".env.dev",
    "production": ".env.production",
}


def load_environment_config(environment):
    """
    Load environment-specific configuration from the matching .env file.

    Args:
        environment (str): Target environment ('development', 'production')

    Returns:
        callable: decouple config callable reading from the environment's .env
            file, or the default process-environment config when the file is
            missing.
    """
    env_file_name = ENV_FILES.get(environment, ".env")
    env_file_path = Path(__file__).resolve().parent.parent.parent.parent / env_file_name

    if env_file_path.exists():
        print(f"✓ Loading environment: {environment} from {env_file_name}")
        return Config(RepositoryEnv(str(env_file_path)))

    print(f"✗ Warning: {env_file_name} not found, using default config")
    return default_config
