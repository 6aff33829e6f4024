# JournalSync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "source": {
        "uuid": "local-server",
        "journal_path": "~/.config/journalsync/journal.yaml",
    },
    "servers": {
        "parent": {
            "uuid": "parent-server",
            "nickname": "parent",
            "role": "parent",
            "enabled": True,
            # Scheduler and global property changes stay local
            "classes_not_sent": [
                "org.openmrs.scheduler.",
                "org.openmrs.GlobalProperty",
            ],
        },
    },
    "transmission": {
        "output_dir": "~/.config/journalsync/transmissions",
        "max_records": 50,
        "request_response": False,
        "write_file": True,
    },
    "dependency": {
        "entity_prefix": "org.openmrs.",
        "collection_prefix": "org.hibernate.collection.",
        "first_match_decides": False,
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_level": "WARNING",
        "log_file": "~/.config/journalsync/journalsync.log",
    },
}


def get_default_config() -> dict[str, Any]:
    """Get a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# journalsync Configuration
# Version: 1.0
#
# Builds transmissions of journaled change records for remote servers.
#
# Server roles:
#   - parent: record-level state is authoritative for this server
#   - child:  state is tracked per record in a server override
#
# classes_not_sent lists type name prefixes that are never sent to a server.
# Records containing such a class are marked not_supposed_to_sync.

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
