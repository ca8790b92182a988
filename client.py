import sys
import json
import os
import time

# Pipe into the server to exercise every tool:
#   python client.py | python -m script_registry.mcp_server --config registry.config.yaml


def send(message):
    json.dump(message, sys.stdout)
    sys.stdout.write("\n")
    sys.stdout.flush()


def tool_call(call_id, name, arguments):
    return {
        "jsonrpc": "2.0",
        "id": call_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


# Send initialize message
send({
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {
            "name": "test-client",
            "version": "1.0.0"
        }
    }
})

# Send initialized notification
send({
    "jsonrpc": "2.0",
    "method": "notifications/initialized",
    "params": {}
})

send(tool_call(2, "ping", {"message": "test"}))

# Give the background build a moment before querying
time.sleep(1.0)

send(tool_call(3, "search_api", {"query": "player", "types": ["class"], "limit": 5}))
send(tool_call(4, "get_element", {"element_id": "@minecraft/server.Player"}))
send(tool_call(5, "complete_name", {"prefix": "Entity", "limit": 10}))
send(tool_call(6, "list_members", {"type_name": "Player"}))
send(tool_call(7, "coverage_report", {}))

# Touch the source file to trigger the watcher (if configured)
source_file = os.environ.get("REGISTRY_SOURCE_FILE")
if source_file and os.path.exists(source_file):
    os.utime(source_file, None)
    print(f"Touched {source_file} to trigger file watcher", file=sys.stderr)

# Wait a moment for watcher to process
time.sleep(0.1)

send(tool_call(8, "search_api", {"query": "player", "format": "json", "limit": 3}))
