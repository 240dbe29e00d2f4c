import json
import logging
import os

"""
Reading of configuration files, used by :func:`davkit.davclient.get_davclient`.

A configuration file is a JSON object of sections.  Connection
parameters in a section are prefixed with ``dav_``::

    {
        "default": {
            "dav_url": "https://dav.example.com/",
            "dav_user": "alice",
            "dav_pass": "secret"
        },
        "work": {
            "inherits": "default",
            "dav_url": "https://dav.work.example.com/"
        }
    }
"""

log = logging.getLogger("davkit")


def config_section(config, section="default"):
    """
    Returns a section of the config, with the sections it ``inherits``
    from filled in below it.
    """
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn):
    """
    Reads a JSON config file.  Without a file name, the usual locations
    are tried.  Returns None if no file is found and {} if the file is
    broken.
    """
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config"
        for config_file in (
            f"{cfgdir}/davkit/config.json",
            f"{cfgdir}/davkit.json",
            "/etc/davkit/config.json",
        ):
            if os.path.exists(config_file):
                return read_config(config_file)
        return None

    try:
        with open(fn, "rb") as config_file:
            return json.load(config_file)
    except FileNotFoundError:
        log.info("no config file found at %s", fn)
        return None
    except ValueError:
        log.error("error in config file %s.  It will be ignored", fn, exc_info=True)
    return {}
