#!/usr/bin/env python3
"""
Print Application Registration Tree Example

Signs in with DefaultAzureCredential (for example after `az login`), lists the
application registrations you can see and prints every one of them as a fully
expanded tree. Settings are read from APPREG_TREE_* variables or a .env file.

Usage:
    python examples/print_tree.py [display-name-prefix]
"""

import asyncio
import sys
from typing import Optional

from msgraph_appreg_tree import AppRegistrationExplorer, TreeNode, UserInterface


class ConsoleUserInterface(UserInterface):
    """Minimal non-interactive user interface printing to the console."""

    def set_status_message(self, text):
        print(f"⏳ {text}")
        return text

    def clear_status_message(self, handle):
        pass

    async def show_error_message(self, message, *actions):
        print(f"❌ {message}")
        return None

    async def show_information_message(self, message, *actions):
        print(f"ℹ️  {message}")
        return None


async def print_node(explorer: AppRegistrationExplorer, node: TreeNode, depth: int = 0) -> None:
    description = f"  ({node.description})" if node.description else ""
    print(f"{'  ' * depth}- {node.label}{description}")
    for child in await explorer.synchronizer.get_children(node):
        await print_node(explorer, child, depth + 1)


async def main(prefix: Optional[str] = None):
    """
    Print every visible application registration as a tree
    """
    print("🚀 Application Registration Tree")
    print("=" * 60)

    async with AppRegistrationExplorer(ConsoleUserInterface()) as explorer:
        explorer.synchronizer.filter_text = prefix
        roots = await explorer.synchronizer.get_children()
        print(f"📊 Found {len(roots)} application registrations\n")
        for root in roots:
            await print_node(explorer, root)


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
