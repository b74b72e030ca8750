"""
Example: Basic storage API usage with dsdk
==========================================

This example shows how to issue raw calls through an APIConnection.
"""

import logging

from dsdk import APIConfig, APIConnection, FatalAPIError, get_data


def example_basic_calls():
    """Basic get/post/put/delete example."""

    cfg = APIConfig(
        hostname="172.16.1.10",
        port="7717",
        username="admin",
        password="password",
        tenant="/root",
        timeout="60s",
    )

    with APIConnection(cfg) as conn:
        conn.login()

        # Flat key=value query parameters
        data, _ = get_data(conn.get("app_instances", "limit=10"))
        print("App instances:", data)

        # Nested bodies go in as a single dict
        conn.post("app_instances", {
            "name": "example-ai",
            "storage_instances": [
                {"name": "si-1", "volumes": [{"name": "vol-1", "size": 10, "replica_count": 2}]},
            ],
        })

        # Flat bodies: "true"/"false" become booleans
        conn.put("app_instances/example-ai", "admin_state=offline", "force=true")

        try:
            conn.delete("app_instances/example-ai", "force=true")
        except FatalAPIError as exc:
            print(f"Delete failed ({exc.status}): {exc.error.message if exc.error else exc.body!r}")


def example_connection_context():
    """Using ConnectionContext."""
    from dsdk import ConnectionContext

    # Reads from environment variables: DAT_MGMT, DAT_USER, DAT_PASS, DAT_TENANT, DAT_API
    with ConnectionContext() as conn:
        data, _ = get_data(conn.session.get("system"))
        print("System:", data)


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    example_basic_calls()
