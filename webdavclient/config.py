"""
Configuration file handling.  A config file is a JSON (or YAML, if
PyYAML is installed) object with one section per server:

    {
        "default": {
            "webdav_url": "https://dav.example.com/remote.php/webdav/",
            "webdav_user": "alice",
            "webdav_pass": "secret"
        },
        "work": {"inherits": "default", "webdav_url": "https://work.example.com/dav/"},
        "all": {"contains": ["default", "work"]}
    }
"""
import json
import logging
import os
from fnmatch import fnmatch

log = logging.getLogger(__name__)

_GLOB_CHARS = frozenset("[*?")


def _is_glob(name):
    return not _GLOB_CHARS.isdisjoint(name)


def _enabled(config, name):
    return not config.get(name, {}).get("disable", False)


def expand_config_section(config, section="default", _parents=frozenset()):
    """
    Turn a section name into the list of section names it stands for.
    Usually that is just [section].  A disabled section stands for
    nothing, "*" for every enabled section, a glob pattern (work_*) for
    the matching sections and a section with a "contains" list for the
    expansion of each name in the list.
    """
    if section == "*":
        return [name for name in config if _enabled(config, name)]

    if _is_glob(section):
        found = set()
        for name in config:
            if not fnmatch(name, section):
                continue
            if _is_glob(name):
                ## no recursion on odd section names
                found.add(name)
            else:
                found.update(expand_config_section(config, name, _parents))
        return sorted(found)

    members = config.get(section, {}).get("contains")
    if members is None:
        return [section] if _enabled(config, section) else []

    parents = _parents | {section}
    found = []
    for member in members:
        if member in parents:
            continue
        for name in expand_config_section(config, member, parents):
            if name not in found:
                found.append(name)
    return found


def config_section(config, section="default"):
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def connection_params(section):
    """
    Pick the client parameters out of a config section.  Keys are
    prefixed with webdav_, and webdav_user/webdav_pass are accepted as
    short forms of webdav_username/webdav_password.
    """
    conn_params = {}
    for k in section:
        if k.startswith("webdav_") and section[k] is not None:
            key = k[7:]
            if key == "pass":
                key = "password"
            if key == "user":
                key = "username"
            conn_params[key] = section[k]
    return conn_params


def _default_locations():
    cfgdir = os.path.join(os.environ.get("HOME", "/"), ".config", "webdavclient")
    return (
        os.path.join(cfgdir, "config.json"),
        os.path.join(cfgdir, "config.yaml"),
        "/etc/webdavclient/config.json",
    )


def _load_yaml(fn, raw):
    ## yaml is optional, see the yaml extra
    try:
        import yaml
    except ImportError:
        log.error(f"config file {fn} is not valid json, and pyyaml is not installed")
        return {}
    try:
        return yaml.safe_load(raw) or {}
    except yaml.YAMLError:
        log.error(f"config file {fn} is neither valid json nor yaml, it will be ignored")
        return {}


def read_config(fn=None):
    """
    Load a config file, JSON or YAML.  Without a file name the first
    config found in the default locations is loaded, None if there is
    none.  A missing or broken file gives an empty config.
    """
    if not fn:
        for location in _default_locations():
            cfg = read_config(location)
            if cfg:
                return cfg
        return None

    try:
        with open(fn, "rb") as config_file:
            raw = config_file.read()
    except FileNotFoundError:
        log.info(f"no config file {fn}")
        return {}

    try:
        return json.loads(raw)
    except ValueError:
        return _load_yaml(fn, raw)
