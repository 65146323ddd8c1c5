"""CLI entrypoint for PR Checker."""

import argparse
import sys
from pathlib import Path

from pr_checker.analysis.changed_files import list_changed_files
from pr_checker.config import Config, Credentials, load_config
from pr_checker.execution.service import build_service
from pr_checker.github_client import GitHubClient, decode_private_key
from pr_checker.inference.providers import OpenRouterProvider
from pr_checker.output.github_comment import CommentPoster
from pr_checker.output.results import create_run_directory
from pr_checker.pipeline import run_pr_analysis
from pr_checker.visual.image_host import ImgBBUploader
from pr_checker.visual.mermaid import MermaidRenderer


def build_github_client(credentials: Credentials) -> GitHubClient | None:
    """Create a GitHub client, preferring App credentials over a token."""
    if credentials.has_github_app:
        return GitHubClient.from_app_credentials(
            credentials.github_app_id,
            credentials.github_app_installation_id,
            decode_private_key(credentials.github_app_private_key),
        )
    if credentials.github_token:
        return GitHubClient(credentials.github_token)
    return None


def list_free_models(config: Config, credentials: Credentials) -> int:
    if not credentials.openrouter_api_key:
        print("Error: OPENROUTER_API_KEY environment variable required", file=sys.stderr)
        return 1
    provider = OpenRouterProvider(credentials.openrouter_api_key, config.llm)
    models = provider.list_models(free_only=True)
    print(f"📊 Found {len(models)} free models")
    for model in models:
        print(f"  {model.get('id', '')}  (context: {model.get('context_length', 'N/A')})")
    return 0


def run(args: argparse.Namespace, credentials: Credentials) -> int:
    config = load_config(Path(args.config))
    if args.post_comment:
        config.comment.enabled = True

    if args.list_models:
        return list_free_models(config, credentials)

    github = build_github_client(credentials)
    title = description = ""
    owner = repo_name = None

    if args.repo:
        if github is None:
            print(
                "Error: Either GITHUB_TOKEN or GitHub App credentials "
                "(GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID, GITHUB_APP_PRIVATE_KEY_BASE64) "
                "required to read a PR",
                file=sys.stderr,
            )
            return 1
        owner, repo_name = args.repo.split("/")
        print(f"🔍 Fetching PR #{args.pr} from {args.repo}...")
        pr = github.fetch_pr(owner, repo_name, args.pr, config.ignore)
        files, title, description = pr.files, pr.title, pr.description
    else:
        files = list_changed_files(Path(args.path), config.ignore)

    run_dir = create_run_directory(Path(args.output_dir or config.output.results_dir))
    service = build_service(config, credentials, run_dir)

    uploader = ImgBBUploader(credentials.imgbb_api_key) if credentials.imgbb_api_key else None
    renderer = MermaidRenderer(
        command=config.comment.mermaid_command,
        timeout=config.comment.render_timeout_seconds,
    )
    poster = CommentPoster(github, owner, repo_name, args.pr)

    result = run_pr_analysis(
        files,
        service,
        config,
        poster=poster,
        renderer=renderer,
        uploader=uploader,
        title=title,
        description=description,
    )
    print(f"\n✨ Done in {result['duration_ms']}ms. Results saved to: {result['run_dir']}")
    return 0


def main() -> int:
    """Main entry point."""
    from dotenv import load_dotenv
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Multi-model PR review with diagrams",
        prog="pr-checker",
    )
    parser.add_argument("--repo", help="GitHub repo (owner/repo)")
    parser.add_argument("--pr", type=int, help="PR number")
    parser.add_argument("--path", default=".", help="Local project path (when --repo is not set)")
    parser.add_argument("--config", default=".pr-checker.yaml", help="Config file path")
    parser.add_argument("--output-dir", help="Base directory for run results")
    parser.add_argument("--post-comment", action="store_true", help="Post comments to GitHub")
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List free models available on OpenRouter and exit",
    )

    args = parser.parse_args()

    if args.repo and not args.pr:
        parser.error("--pr is required with --repo")

    try:
        return run(args, Credentials.from_env())
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
