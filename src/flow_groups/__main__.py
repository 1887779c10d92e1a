"""CLI entry point for flow-groups."""

import json
import logging
import sys

import click

from flow_groups.commands import ToolResult, execute_tool
from flow_groups.config import HaloPaddingConfig
from flow_groups.halos import compute_halos, sort_halos_by_area
from flow_groups.model.flow import Flow
from flow_groups.visibility import refresh

_DIRECTIONS = ["LR", "RL", "TB", "TD", "BT"]


def _fail(message: str) -> None:
    click.echo(f"error: {message}", err=True)
    sys.exit(1)


def _read_flow(input: str | None) -> Flow:
    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            _fail(f"cannot read '{input}': {e}")
    else:
        text = sys.stdin.read()

    try:
        return Flow.from_dict(json.loads(text or "{}"))
    except (ValueError, TypeError, KeyError) as e:
        _fail(f"invalid flow JSON: {e}")


def _write_json(payload: object, output: str | None) -> None:
    rendered = json.dumps(payload, indent=2) + "\n"
    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            _fail(f"cannot write '{output}': {e}")
    else:
        click.echo(rendered, nl=False)


def _run_tool(name: str, params: dict, input: str | None, output: str | None) -> None:
    result: ToolResult = execute_tool(name, params, _read_flow(input))
    if not result.success:
        _fail(result.error or f"{name} failed")
    _write_json(result.updated_flow.to_dict(), output)


input_argument = click.argument("input", required=False, type=click.Path(exists=True))
output_option = click.option(
    "--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout"
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions to stderr")
def main(verbose: bool) -> None:
    """Group, collapse and lay out flow diagrams stored as JSON."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@input_argument
@click.option("--member", "-m", "members", multiple=True, required=True, help="Member node id (repeatable)")
@click.option("--id", "group_id", type=str, default=None, help="Group id (default: first free group-N)")
@click.option("--label", "-l", type=str, default=None, help="Group label (default: Group N)")
@click.option("--expanded", is_flag=True, help="Create the group expanded instead of collapsed")
@output_option
def group(
    input: str | None, members: tuple[str, ...], group_id: str | None, label: str | None, expanded: bool, output: str | None
) -> None:
    """Wrap the given nodes in a new group."""
    params = {"memberIds": list(members), "groupId": group_id, "label": label, "collapsed": not expanded}
    _run_tool("createGroup", params, input, output)


@main.command()
@input_argument
@click.option("--id", "group_id", type=str, required=True, help="Group id to remove")
@output_option
def ungroup(input: str | None, group_id: str, output: str | None) -> None:
    """Remove a group and lift its members one level up."""
    _run_tool("ungroup", {"groupId": group_id}, input, output)


@main.command()
@input_argument
@click.option("--id", "group_id", type=str, required=True, help="Group id to toggle")
@click.option("--expand/--collapse", "expand", default=None, help="Force a state instead of flipping")
@output_option
def toggle(input: str | None, group_id: str, expand: bool | None, output: str | None) -> None:
    """Expand or collapse a group."""
    params: dict = {"groupId": group_id}
    if expand is not None:
        params["expand"] = expand
    _run_tool("toggleGroupExpansion", params, input, output)


@main.command("collapse-subtree")
@input_argument
@click.option("--node", "node_id", type=str, required=True, help="Root node of the subtree")
@click.option("--expand", is_flag=True, help="Reveal the subtree instead of hiding it")
@output_option
def collapse_subtree_command(input: str | None, node_id: str, expand: bool, output: str | None) -> None:
    """Hide (or reveal) every node downstream of a node."""
    _run_tool("toggleSubtreeCollapse", {"nodeId": node_id, "collapsed": not expand}, input, output)


@main.command()
@input_argument
@output_option
def visibility(input: str | None, output: str | None) -> None:
    """Recompute hidden flags and boundary edges."""
    _write_json(refresh(_read_flow(input)).to_dict(), output)


@main.command()
@input_argument
@click.option("--direction", "-d", type=click.Choice(_DIRECTIONS, case_sensitive=False), default="LR")
@output_option
def layout(input: str | None, direction: str, output: str | None) -> None:
    """Assign positions to every visible node."""
    _run_tool("autoLayout", {"direction": direction}, input, output)


@main.command()
@input_argument
@click.option("--padding", "-p", type=float, default=None, help="Base padding for both axes")
@output_option
def halos(input: str | None, padding: float | None, output: str | None) -> None:
    """Print halo rectangles for expanded groups, smallest first."""
    flow = _read_flow(input)
    config = HaloPaddingConfig.from_value(padding)
    _write_json([h.to_dict() for h in sort_halos_by_area(compute_halos(flow.nodes, padding=config))], output)


if __name__ == "__main__":
    main()
