# astromap/utils/config.py
import dataclasses
import os
import json
import yaml

from astromap.core.constants import SolverConfig
from astromap.core.validators import InvalidInputError, _err

class AttrDict(dict):
    """Dict that also supports attribute access: cfg.solver and cfg['solver'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

def _merge(base, extra):
    out = dict(base)
    for k, v in extra.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out

def _load_json_if(path):
    # a missing override file is fine; a malformed one is not
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f) or {}
        except json.JSONDecodeError as e:
            raise InvalidInputError(_err(["ASTROMAP_CONFIG_OVERRIDES"], f"invalid JSON in {path}: {e}")) from e
    if not isinstance(data, dict):
        raise InvalidInputError(_err(["ASTROMAP_CONFIG_OVERRIDES"], f"{path} must hold a JSON object"))
    return data

def load_config(path: str):
    """
    Load YAML config from `path` and deep-merge the optional JSON file named by
    ASTROMAP_CONFIG_OVERRIDES on top of it.
    Returns an AttrDict for convenient access.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    overrides = _load_json_if(os.getenv("ASTROMAP_CONFIG_OVERRIDES"))
    if overrides:
        data = _merge(data, overrides)

    return _to_attr(data)

def solver_config_from(cfg, base: SolverConfig = None) -> SolverConfig:
    """Build a SolverConfig from the `solver:` section; unknown keys are rejected."""
    base = base or SolverConfig()
    section = dict(cfg.get("solver") or {})
    known = {f.name for f in dataclasses.fields(SolverConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise InvalidInputError([_err(["solver", k], f"unknown solver setting '{k}'") for k in unknown])
    if "stationary_thresholds" in section:
        section["stationary_thresholds"] = {**base.stationary_thresholds, **section["stationary_thresholds"]}
    return dataclasses.replace(base, **section)
