#!/usr/bin/env python3
"""rulescope Command Line Interface.

Usage:
    rulescope logic-graph rules.yaml [more.json ...] [--filter PATTERN] [--json]
    rulescope walk graph.json NODE_ID [--direction to|from] [--json]
"""
import argparse
import json
import re
import sys
from collections import Counter
from pathlib import Path


def _print_summary(graph) -> None:
    node_types = Counter(node.type.value for node in graph.nodes.values())
    edge_types = Counter(edge.type.value for edge in graph.edges.values())

    print(f"   Nodes: {len(graph.nodes)}")
    for node_type, count in sorted(node_types.items()):
        print(f"      {node_type:<24} {count}")
    print(f"   Edges: {len(graph.edges)}")
    for edge_type, count in sorted(edge_types.items()):
        print(f"      {edge_type:<24} {count}")


def _print_json(graph) -> None:
    print(json.dumps(graph.to_export().model_dump(mode="json", by_alias=True), indent=2))


def cmd_logic_graph(args):
    """Build the logic graph of one or more rule files."""
    from .app.services import get_logic_graph_builder, filter_facts, get_productions, RuleFileSource

    for source in args.sources:
        if not Path(source).is_file():
            print(f"❌ Rule file not found: {source}")
            return 1

    try:
        productions = get_productions([RuleFileSource(Path(s)) for s in args.sources])
        graph = get_logic_graph_builder().build(productions)
    except ValueError as e:
        print(f"❌ Could not build logic graph: {e}")
        return 1

    if args.filter:
        try:
            graph = filter_facts(graph, args.filter)
        except re.error as e:
            print(f"❌ Invalid pattern: {e}")
            return 1

    if args.json:
        _print_json(graph)
    else:
        print(f"🔍 Logic graph for {len(productions)} rule(s)")
        if args.filter:
            print(f"   Filtered on fact types matching '{args.filter}'")
        _print_summary(graph)

    return 0


def cmd_walk(args):
    """Walk an exported graph backward or forward from one node."""
    from .app.models.graph import Graph
    from .app.models.schemas import GraphExport
    from .app.services import connects_to, reachable_from

    try:
        with open(args.graph, 'r') as f:
            graph = Graph.from_export(GraphExport.model_validate(json.load(f)))
    except (OSError, ValueError) as e:
        print(f"❌ Could not read graph: {e}")
        return 1

    if args.node_id not in graph.nodes:
        print(f"❌ Node not in graph: {args.node_id}")
        return 1

    if args.direction == 'to':
        result = connects_to(graph, args.node_id)
        heading = f"⬅️  Everything leading into {args.node_id}"
    else:
        result = reachable_from(graph, args.node_id)
        heading = f"➡️  Everything reachable from {args.node_id}"

    if args.json:
        _print_json(result)
    else:
        print(heading)
        _print_summary(result)

    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="rulescope - Rule Logic and Explanation Graphs CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rulescope logic-graph samples/rules/orders.yaml
  rulescope logic-graph samples/rules/orders.yaml --filter Order --json > graph.json
  rulescope walk graph.json FT-orders.Order --direction from
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    graph_parser = subparsers.add_parser('logic-graph', help='Build a logic graph from rule files')
    graph_parser.add_argument('sources', nargs='+', help='Rule files (.json, .yaml, .yml)')
    graph_parser.add_argument('--filter', '-f', help='Keep only what connects to fact types matching this regex')
    graph_parser.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    walk_parser = subparsers.add_parser('walk', help='Walk an exported graph from one node')
    walk_parser.add_argument('graph', help='Graph JSON file, as written by logic-graph --json')
    walk_parser.add_argument('node_id', help='Node to start from')
    walk_parser.add_argument('--direction', '-d', choices=['to', 'from'], default='from',
                             help="'to': what leads into the node, 'from': what it leads to")
    walk_parser.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    from .app.core.logging import setup_logging
    # stdout stays clean for --json output
    setup_logging(json_format=False, stream=sys.stderr)

    commands = {
        'logic-graph': cmd_logic_graph,
        'walk': cmd_walk,
    }

    return commands[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
