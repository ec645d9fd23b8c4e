#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from digitbot.config.loader import ConfigLoader
from digitbot.config.validation import ConfigValidator, ValidationError
from digitbot.rewards import RewardCalculator
from digitbot.errors import RewardStructureError


def validate_engine_config(loader: ConfigLoader) -> List[ValidationError]:
    """Validate the merged engine configuration."""
    return ConfigValidator.validate_config(loader.merge_config())


def validate_session_template(loader: ConfigLoader) -> List[ValidationError]:
    """Validate the session shipped in engine.yaml, merged over session defaults."""
    template = loader.load_session_template()
    if not template:
        return []
    merged = {**loader.merge_config()["session"], **template}
    return ConfigValidator.validate_session(merged)


def main():
    """Main validation function."""
    print("🔍 Validating digitbot configuration...")

    loader = ConfigLoader.create()
    all_valid = True

    checks = [
        ("engine settings", validate_engine_config),
        ("session template", validate_session_template),
    ]

    for name, check in checks:
        print(f"\n📊 Validating {name}...")

        try:
            errors = check(loader)

            if errors:
                print(f"❌ Found {len(errors)} validation errors:")
                for error in errors:
                    print(f"  • {error.field}: {error.message} (value: {error.value})")
                all_valid = False
            else:
                print(f"✅ {name} is valid")

        except Exception as e:
            print(f"❌ Error validating {name}: {e}")
            all_valid = False

    print(f"\n📋 Checking payout tables against stake limits...")
    try:
        settings = loader.load_settings()
        calculator = RewardCalculator(stake_limits=settings.stake_limits)
        print(f"✅ {len(calculator.contract_types)} reward structures cover "
              f"{settings.stake_limits.min_stake}-{settings.stake_limits.max_stake}")
    except RewardStructureError as e:
        print(f"❌ Reward tables invalid: {e}")
        all_valid = False

    if all_valid:
        print(f"\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print(f"\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
