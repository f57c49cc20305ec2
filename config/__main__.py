"""Command line interface for testing configuration loading"""
from pathlib import Path

from . import get_settings, DEFAULTS

SECRET_KEYS = {'openai_api_key'}

def main():
    """Display loaded configuration"""
    settings = get_settings()

    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings.items():
        if key in SECRET_KEYS and value:
            value = '*' * 8
        print(f"{key}: {value}")

    # Save example configuration file
    with open(Path("settings.conf.example"), "w") as f:
        f.write("[DEFAULT]\n")
        f.write("# Database connection URL (required)\n")
        f.write("db_url = postgresql://root@localhost:26257/tipjar?sslmode=disable\n")
        for key, value in DEFAULTS.items():
            f.write(f"{key} = {value}\n")

if __name__ == "__main__":
    main()
