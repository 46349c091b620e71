#!/usr/bin/env python3
"""Mission parameter and policy validation script."""

import sys
from pathlib import Path
from typing import Optional

import orjson

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bliip_app.config.defaults import PRESET_CONFIGURATIONS, default_user_inputs, preset_inputs
from bliip_app.config.loader import ConfigLoader
from bliip_app.errors import ConfigurationError
from bliip_app.models.inputs import UserInputs
from bliip_app.validation import InputValidator, ValidationError


def report(name: str, errors: list[ValidationError], advisories: list[ValidationError]) -> bool:
    """Print the validation result for one input set."""
    if errors:
        print(f"❌ {name}: {len(errors)} validation errors")
        for error in errors:
            print(f"  • {error.field} [{error.rule}]: {error.message} (value: {error.value})")
    else:
        print(f"✅ {name} is valid")

    for advisory in advisories:
        print(f"  ⚠️  {advisory.field}: {advisory.message}")

    return not errors


def validate_inputs_file(path: Path, validator: InputValidator) -> bool:
    """Validate a JSON file holding a UserInputs mapping."""
    try:
        data = orjson.loads(path.read_bytes())
        inputs = UserInputs.from_dict(data)
    except (OSError, orjson.JSONDecodeError, KeyError, TypeError) as e:
        print(f"❌ Cannot read {path}: {e}")
        return False

    return report(str(path), validator.validate(inputs), validator.advisories(inputs))


def main(argv: Optional[list[str]] = None) -> None:
    """Main validation function."""
    argv = sys.argv[1:] if argv is None else argv
    print("🔍 Validating BLIiPSim policies and mission parameters...")

    # Policies from defaults and policy.yaml
    loader = ConfigLoader.create()
    try:
        policies = loader.load_policies()
    except ConfigurationError as e:
        print(f"❌ Policy configuration invalid: {e}")
        sys.exit(1)
    print(f"✅ Policies loaded from {loader.config_dir}")

    validator = InputValidator(policies.validation)
    all_valid = True

    print("\n📋 Validating defaults...")
    inputs = default_user_inputs()
    all_valid &= report("defaults", validator.validate(inputs), validator.advisories(inputs))

    print("\n📋 Validating presets...")
    for name in PRESET_CONFIGURATIONS:
        inputs = preset_inputs(name)
        all_valid &= report(name, validator.validate(inputs), validator.advisories(inputs))

    if argv:
        print("\n📄 Validating input files...")
        for raw_path in argv:
            all_valid &= validate_inputs_file(Path(raw_path), validator)

    if all_valid:
        print("\n🎉 All validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
