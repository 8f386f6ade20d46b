# Purpose: Advisory checks of gateway traffic against spec/openapi.yaml.
# A failed check is logged, never enforced.

import os
from functools import lru_cache

import yaml
import referencing
from jsonschema import Draft7Validator
from referencing.jsonschema import DRAFT7

from mallet_config import BASE_DIR, log

CONTRACT_PATH = os.path.join(BASE_DIR, "spec", "openapi.yaml")
CONTRACT_URI = "http://mallet/openapi.yaml"


@lru_cache(maxsize=4)
def load_registry(contract_path=CONTRACT_PATH):
    """Loads the contract once per path. Returns None when the file is absent."""
    if not os.path.exists(contract_path):
        return None
    with open(contract_path, "r") as f:
        contract = yaml.safe_load(f)
    resource = referencing.Resource.from_contents(contract, default_specification=DRAFT7)
    return referencing.Registry().with_resource(uri=CONTRACT_URI, resource=resource)


def _field_path(error):
    return "/".join(str(part) for part in error.absolute_path) or "$"


def contract_errors(data, schema_name, contract_path=CONTRACT_PATH):
    """Returns a list of violation messages, or None if there is no contract to check against."""
    registry = load_registry(contract_path)
    if registry is None:
        return None
    target_schema = {"$ref": f"{CONTRACT_URI}#/components/schemas/{schema_name}"}
    validator = Draft7Validator(target_schema, registry=registry)
    # Field path and failed keyword only; messages would echo the submitted values.
    return [f"{_field_path(error)}: {error.validator}" for error in validator.iter_errors(data)]


def check_against_contract(data, schema_name, contract_path=CONTRACT_PATH):
    """Logs whether `data` matches the named schema. Returns True/False, or None if skipped."""
    errors = contract_errors(data, schema_name, contract_path)
    if errors is None:
        return None
    if errors:
        log("!", f"Contract check failed ({schema_name}): {errors[0]}")
        return False
    log("OK", f"JSON validated against {schema_name}")
    return True
