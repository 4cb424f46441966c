"""
Tests that each entry point only pulls in the layers it needs.

**Feature: docsync, Property 4: Entry Point Independence**
"""

import sys
from typing import Set


def get_transitive_imports(module_name: str) -> Set[str]:
    """
    Import a module from a clean slate and return every docsync module it loaded.

    Previously loaded docsync modules are restored afterwards so other tests
    keep working with the same class objects.
    """
    saved = {key: mod for key, mod in sys.modules.items() if key.startswith("docsync")}
    for key in saved:
        del sys.modules[key]

    try:
        before_import = set(sys.modules.keys())
        __import__(module_name)
        return set(sys.modules.keys()) - before_import
    finally:
        for key in [key for key in sys.modules if key.startswith("docsync")]:
            del sys.modules[key]
        sys.modules.update(saved)


def test_mcp_server_does_not_import_http_server():
    """
    **Feature: docsync, Property 4: Entry Point Independence**

    The MCP server never loads the webhook HTTP layer or the job queue.
    """
    transitive_imports = get_transitive_imports("docsync.mcp_server")

    assert "docsync.http_server" not in transitive_imports
    assert "docsync.services.job_queue" not in transitive_imports


def test_http_server_imports_from_services_container():
    """
    **Feature: docsync, Property 4: Entry Point Independence**

    The HTTP server gets its services from the shared container.
    """
    transitive_imports = get_transitive_imports("docsync.http_server")

    assert "docsync.services.container" in transitive_imports
    assert "docsync.mcp_server" not in transitive_imports
