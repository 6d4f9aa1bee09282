"""outclaw CLI."""

import argparse
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

import httpx
from pydantic import ValidationError

from outclaw import __version__
from outclaw.api_client import ApiClient
from outclaw.config import (
    OutclawConfig,
    clear_config,
    get_api_base,
    is_logged_in,
    load_config,
    save_config,
)
from outclaw.errors import (
    ApiError,
    AuthRequiredError,
    OutclawError,
    SkillNotFoundError,
    SkillValidationError,
    TransportError,
)
from outclaw.installer import install_from_specifier
from outclaw.paths import Scope, read_workspace_root, resolve_scope_paths
from outclaw.publisher import publish_skill
from outclaw.skills.manager import SkillManager
from outclaw.skills.models import CreateSkillOptions, SkillInfo
from outclaw.skills.parser import SkillParser

logger = logging.getLogger(__name__)

type Handler = Callable[[argparse.Namespace, Invocation], Awaitable[int]]

PREVIEW_LINES = 10
VERIFY_URL = "https://outclaws.ai"
WORKFLOW_URL = "https://outclaws.ai/workflow/{id}"


@dataclass
class Invocation:
    """State resolved once per CLI invocation."""

    workspace: Path | None
    cwd: Path = field(default_factory=Path.cwd)

    def manager(self, scope: Scope) -> SkillManager:
        """Return the skill manager of a scope."""
        return SkillManager(
            resolve_scope_paths(scope, workspace=self.workspace, cwd=self.cwd)
        )


def _scope(args: argparse.Namespace) -> Scope:
    return Scope.GLOBAL if getattr(args, "global_scope", False) else Scope.PROJECT


def _error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


async def install_command(args: argparse.Namespace, inv: Invocation) -> int:
    """Install a skill from a specifier."""
    scope = _scope(args)
    manager = inv.manager(scope)
    async with httpx.AsyncClient() as http_client:
        api = ApiClient.create(client=http_client)
        result = await install_from_specifier(
            args.specifier,
            manager,
            http_client=http_client,
            api=api,
            force=args.force,
        )

    if result.warning:
        print(f"Warning: {result.warning}")
    print(f"Installed {result.name}")
    print(f"  Path:  {result.path}")
    print(f"  Scope: {scope}")
    print(f"Use /{result.name} in OpenClaw to invoke this skill")
    return 0


async def uninstall_command(args: argparse.Namespace, inv: Invocation) -> int:
    """Remove an installed skill."""
    scope = _scope(args)
    inv.manager(scope).uninstall_skill(args.name)
    print(f"Uninstalled {args.name} from {scope} skills")
    return 0


def _skill_summary(skill: SkillInfo) -> dict[str, str | None]:
    return {
        "name": skill.name,
        "description": skill.description,
        "version": skill.meta.version,
        "scope": str(skill.scope),
        "path": str(skill.base_dir),
    }


async def list_command(args: argparse.Namespace, inv: Invocation) -> int:
    """List installed skills."""
    if args.global_scope:
        scopes = [Scope.GLOBAL]
    elif args.project_scope:
        scopes = [Scope.PROJECT]
    else:
        scopes = [Scope.GLOBAL, Scope.PROJECT]

    skills = [s for scope in scopes for s in inv.manager(scope).list_skills()]

    if args.json:
        print(json.dumps([_skill_summary(s) for s in skills], indent=2))
        return 0

    if not skills:
        print("No skills installed.")
        print("Install skills with: outclaw install <skill>")
        return 0

    print(f"Found {len(skills)} skill(s):\n")
    for s in skills:
        desc = s.description if len(s.description) <= 50 else s.description[:47] + "..."
        print(f"  {s.name:<24} {s.meta.version or '-':<8} {s.scope:<8} {desc}")
    return 0


async def info_command(args: argparse.Namespace, inv: Invocation) -> int:
    """Show details of an installed skill."""
    scopes = [Scope.GLOBAL] if args.global_scope else [Scope.PROJECT, Scope.GLOBAL]
    skill = next(
        (s for scope in scopes if (s := inv.manager(scope).get_skill(args.name))),
        None,
    )
    if skill is None:
        raise SkillNotFoundError(f"Skill '{args.name}' not found")

    meta = skill.meta
    print(f"  {meta.name}\n")
    print(f"  Description: {meta.description}")
    print(f"  Version: {meta.version or 'unversioned'}")
    print(f"  Scope: {skill.scope}")
    print(f"  Path: {skill.base_dir}")
    print(f"  User-invocable: {'yes' if meta.user_invocable else 'no'}")
    print(
        "  Model invocation: "
        f"{'disabled' if meta.disable_model_invocation else 'enabled'}"
    )
    if meta.allowed_tools:
        print(f"  Allowed tools: {', '.join(meta.allowed_tools)}")
    for label, value in (
        ("Arguments", meta.argument_hint),
        ("Context", meta.context),
        ("Agent", meta.agent),
        ("Model", meta.model),
    ):
        if value:
            print(f"  {label}: {value}")

    structure = SkillParser(skill.base_dir).get_structure()
    resources = [
        label
        for label, present in (
            ("references", structure.has_references),
            ("scripts", structure.has_scripts),
            ("examples", structure.has_examples),
        )
        if present
    ]
    print(f"  Files: {len(structure.files)}")
    if resources:
        print(f"  Resources: {', '.join(resources)}")

    print("\n  Content preview:\n")
    lines = skill.content.splitlines()
    for line in lines[:PREVIEW_LINES]:
        print(f"  | {line}")
    if len(lines) > PREVIEW_LINES:
        print("  | ...")
    return 0


async def init_command(args: argparse.Namespace, inv: Invocation) -> int:
    """Scaffold a new skill."""
    scope = _scope(args)
    try:
        options = CreateSkillOptions(
            name=args.name,
            description=args.description or f"{args.name} skill for OpenClaw",
            user_invocable=args.user_invocable,
            disable_model_invocation=args.disable_model_invocation,
            allowed_tools=args.allowed_tools,
            argument_hint=args.argument_hint,
            context=args.context,
        )
    except ValidationError as e:
        err = e.errors()[0]
        raise SkillValidationError(err["msg"], field=str(err["loc"][0])) from e
    path = inv.manager(scope).create_skill(options)
    print(f"Skill created at: {path}")
    print(f"Edit {path / 'SKILL.md'} to add your skill instructions")
    return 0


async def search_command(args: argparse.Namespace, _: Invocation) -> int:
    """Search the registry."""
    async with ApiClient.create() as api:
        result = await api.search_workflows(
            args.query, limit=args.limit, sort=args.sort, community=args.community
        )

    if args.json:
        print(json.dumps([w.model_dump() for w in result.workflows], indent=2))
        return 0

    if not result.workflows:
        print(f"No skills found matching '{args.query}'")
        return 0

    print(f"Found {result.total} skill(s):\n")
    for w in result.workflows:
        author = "unknown"
        if w.creator:
            if w.creator.twitter_handle:
                author = f"@{w.creator.twitter_handle}"
            elif w.creator.name:
                author = w.creator.name
        print(f"  {w.title} by {author} ({w.downloads} downloads)")
        print(f"    {w.description}")
        print(f"    outclaw install {w.id}")
    if result.pages > 1:
        print(f"\nPage {result.page} of {result.pages}.")
    return 0


async def login_command(args: argparse.Namespace, _: Invocation) -> int:
    """Store an API key, either checked with the registry or newly issued."""
    if is_logged_in():
        name = load_config().agent_name or "unknown"
        print(f"Already logged in as '{name}'. Run 'outclaw logout' first.")
        return 0

    api_base = get_api_base()
    if args.register:
        return await _register(args, api_base)

    token = args.token.strip()
    async with ApiClient(api_base) as api:
        agent = await api.verify_api_key(token)
    if agent is None:
        raise AuthRequiredError("Invalid API key.")

    save_config(
        OutclawConfig(
            api_key=token,
            agent_id=agent.id,
            agent_name=agent.name,
            verified=agent.verified,
            api_base=load_config().api_base,
        )
    )
    print(f"Logged in as {agent.name}")
    if not agent.verified:
        print("Your agent is not verified yet.")
        print(f"Visit {VERIFY_URL} to complete verification (required for publishing).")
    return 0


async def _register(args: argparse.Namespace, api_base: str) -> int:
    name = (args.name or "").strip()
    if not name:
        raise OutclawError("An agent name is required to register. Use --name.")

    async with ApiClient(api_base) as api:
        result = await api.register_agent(name, args.description)

    save_config(
        OutclawConfig(
            api_key=result.api_key,
            agent_id=result.agent_id,
            agent_name=name,
            verified=False,
            api_base=load_config().api_base,
        )
    )
    print("Agent registered.")
    print(f"  API Key: {result.api_key}")
    print("  This key is only shown once. Store it securely!")
    print("To verify your agent (required for publishing):")
    print(f"  1. Visit: {result.claim_url}")
    print(f"  2. Post on X/Twitter with code: {result.verification_code}")
    print("  3. Submit the post URL to complete verification")
    return 0


async def publish_command(args: argparse.Namespace, inv: Invocation) -> int:
    """Publish a local skill to the registry."""
    if not is_logged_in():
        raise AuthRequiredError("You must be logged in to publish.")
    if not load_config().verified:
        _error("Your agent must be verified to publish.")
        print(f"Visit {VERIFY_URL} to complete verification.", file=sys.stderr)
        return 1

    path = Path(args.path)
    if not path.is_absolute():
        path = inv.cwd / path
    async with ApiClient.create() as api:
        try:
            response = await publish_skill(
                path,
                api,
                title=args.title,
                description=args.description,
                community=args.community,
            )
        except ApiError as e:
            if e.code != "verification_required":
                raise
            _error("Your agent must be verified to publish.")
            return 1

    if response.status == "published":
        print("Skill published.")
        print(f"  ID:  {response.id}")
        print(f"  URL: {WORKFLOW_URL.format(id=response.id)}")
        return 0

    _error(f"Skill rejected by security scan: {response.message}")
    if response.security_scan:
        print("Risk factors:", file=sys.stderr)
        for factor in response.security_scan.risk_factors:
            print(f"  - {factor}", file=sys.stderr)
        if response.security_scan.explanation:
            print(response.security_scan.explanation, file=sys.stderr)
    return 1


async def logout_command(_args: argparse.Namespace, _: Invocation) -> int:
    """Forget the stored API key."""
    clear_config()
    print("Logged out.")
    return 0


async def whoami_command(args: argparse.Namespace, _: Invocation) -> int:
    """Show the agent behind the configured API key."""
    if not is_logged_in():
        raise AuthRequiredError("Not logged in. Run 'outclaw login' to authenticate.")

    async with ApiClient.create() as api:
        agent = await api.get_me()

    if args.json:
        fields = {"id", "name", "verified", "created_at"}
        print(json.dumps(agent.model_dump(include=fields), indent=2))
        return 0

    print(f"Agent: {agent.name}")
    print(f"  ID:       {agent.id}")
    print(f"  Verified: {'yes' if agent.verified else 'no'}")
    return 0


def _add_global_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-g",
        "--global",
        action="store_true",
        help="Use the global (workspace) scope.",
        dest="global_scope",
    )


def setup_argument_parser() -> argparse.ArgumentParser:
    """Setup the argument parser."""
    parser = argparse.ArgumentParser(prog="outclaw", description="OpenClaw skill manager")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("install", help="Install a skill.")
    p.add_argument("specifier", help="github:owner/repo, URL, path, id or name.")
    p.add_argument("-f", "--force", action="store_true", help="Overwrite existing.")
    _add_global_flag(p)
    p.set_defaults(handler=install_command)

    p = sub.add_parser("uninstall", help="Remove an installed skill.")
    p.add_argument("name")
    _add_global_flag(p)
    p.set_defaults(handler=uninstall_command)

    p = sub.add_parser("list", help="List installed skills.")
    _add_global_flag(p)
    p.add_argument(
        "-p", "--project", action="store_true", dest="project_scope",
        help="Only list project skills.",
    )
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=list_command)

    p = sub.add_parser("info", help="Show skill details.")
    p.add_argument("name")
    _add_global_flag(p)
    p.set_defaults(handler=info_command)

    p = sub.add_parser("init", help="Create a new skill.")
    p.add_argument("name")
    p.add_argument("-d", "--description", default=None)
    p.add_argument(
        "--allowed-tools",
        type=lambda v: [t.strip() for t in v.split(",") if t.strip()],
        default=None,
        help="Comma separated tool names.",
    )
    p.add_argument("--argument-hint", default=None)
    p.add_argument("--context", choices=["normal", "fork"], default=None)
    p.add_argument(
        "--no-user-invocable",
        action="store_false",
        dest="user_invocable",
        default=None,
    )
    p.add_argument("--disable-model-invocation", action="store_true", default=None)
    _add_global_flag(p)
    p.set_defaults(handler=init_command)

    p = sub.add_parser("search", help="Search the registry.")
    p.add_argument("query")
    p.add_argument("-l", "--limit", type=int, default=10)
    p.add_argument("--sort", choices=["hot", "new", "top"], default=None)
    p.add_argument("--community", default=None)
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=search_command)

    p = sub.add_parser("login", help="Authenticate with an API key.")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--token", help="An existing API key.")
    mode.add_argument(
        "--register", action="store_true", help="Register a new agent instead."
    )
    p.add_argument("--name", default=None, help="Agent name, with --register.")
    p.add_argument(
        "--description", default=None, help="Agent description, with --register."
    )
    p.set_defaults(handler=login_command)

    p = sub.add_parser("publish", help="Publish a skill to the registry.")
    p.add_argument("path", nargs="?", default=".", help="Skill directory or SKILL.md.")
    p.add_argument("--title", default=None)
    p.add_argument("-d", "--description", default=None)
    p.add_argument("--community", default=None, help="Community id.")
    p.set_defaults(handler=publish_command)

    p = sub.add_parser("logout", help="Remove stored credentials.")
    p.set_defaults(handler=logout_command)

    p = sub.add_parser("whoami", help="Show the current agent.")
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=whoami_command)

    return parser


async def run(argv: list[str] | None = None) -> int:
    """outclaw CLI entrypoint. Returns the process exit code."""
    args = setup_argument_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    inv = Invocation(workspace=read_workspace_root())
    handler: Handler = args.handler
    try:
        return await handler(args, inv)
    except AuthRequiredError as e:
        _error(str(e))
        print("Run 'outclaw login' to authenticate.", file=sys.stderr)
    except SkillValidationError as e:
        _error(f"invalid skill: {e}")
    except TransportError as e:
        if e.status_code == httpx.codes.UNAUTHORIZED:
            _error("Authentication failed. Please run 'outclaw login'.")
        else:
            _error(str(e))
    except OutclawError as e:
        # NotSupportedError, SkillConflictError, SkillNotFoundError
        _error(str(e))
    return 1
