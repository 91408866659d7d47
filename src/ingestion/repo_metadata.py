"""Searchable repository metadata document built from the GitHub API.

Lets the assistant answer questions about maintainers and project stats,
which are not present in any source file.
"""

import logging

import requests

from src.ingestion.file_source import GITHUB_API_URL
from src.models.source_file import RepoFile

logger = logging.getLogger(__name__)

METADATA_FILE_PATH = "REPOSITORY_METADATA.md"


def _yes_no(value) -> str:
    return "Yes" if value else "No"


def render_metadata_document(owner: str, repo: str, repo_data: dict, contributors: list[dict]) -> str:
    """Render repository info and contributors as Markdown."""
    license_info = repo_data.get("license") or {}
    lines = [
        f"# Repository Metadata for {owner}/{repo}",
        "",
        "## Repository Information",
        f"- Owner: {owner}",
        f"- Repository: {repo}",
        f"- Full Name: {repo_data.get('full_name', f'{owner}/{repo}')}",
        f"- Description: {repo_data.get('description') or 'No description'}",
        f"- Homepage: {repo_data.get('homepage') or 'None'}",
        f"- Created: {repo_data.get('created_at')}",
        f"- Last Updated: {repo_data.get('updated_at')}",
        f"- Primary Language: {repo_data.get('language')}",
        f"- Stars: {repo_data.get('stargazers_count', 0)}",
        f"- Forks: {repo_data.get('forks_count', 0)}",
        f"- Open Issues: {repo_data.get('open_issues_count', 0)}",
        f"- License: {license_info.get('name') or 'None'}",
        f"- Default Branch: {repo_data.get('default_branch')}",
        "",
        "## Contributors",
        "",
        f"This repository has {len(contributors)} contributors. "
        "Below is the list of all contributors:",
        "",
    ]

    for i, c in enumerate(contributors):
        login = c.get("login", "unknown")
        lines.append(f"### {i + 1}. {login}")
        lines.append(f"- **GitHub Username**: {login}")
        lines.append(f"- **Profile URL**: https://github.com/{login}")
        lines.append(f"- **Contributions**: {c.get('contributions', 0)} commits")
        lines.append(f"- **Account Type**: {c.get('type', 'User')}")
        if i == 0:
            lines.append("- **Role**: Primary Developer/Maintainer")
        lines.append("")

    top = contributors[0] if contributors else {}
    lines += [
        "## Primary Developer",
        "",
        f"The primary developer and maintainer of this repository is "
        f"**{top.get('login', 'Unknown')}** with {top.get('contributions', 0)} contributions.",
        "",
        "## Top Contributors",
        "",
    ]
    lines += [
        f"{i + 1}. **{c.get('login')}**: {c.get('contributions', 0)} contributions"
        for i, c in enumerate(contributors[:10])
    ]

    topics = repo_data.get("topics") or []
    lines += [
        "",
        "## Project Statistics",
        "",
        f"- Total Contributors: {len(contributors)}",
        f"- Total Contributions: {sum(c.get('contributions', 0) for c in contributors)}",
        f"- Repository Size: {repo_data.get('size', 0)} KB",
        f"- Has Wiki: {_yes_no(repo_data.get('has_wiki'))}",
        f"- Has Issues: {_yes_no(repo_data.get('has_issues'))}",
        f"- Has Projects: {_yes_no(repo_data.get('has_projects'))}",
        "",
        "## Topics/Tags",
        "",
        "\n".join(f"- {t}" for t in topics) if topics else "No topics",
        "",
        "---",
        "",
        f"Key contributors include: {', '.join(c.get('login', '') for c in contributors[:5])}.",
        "",
    ]
    return "\n".join(lines)


def build_repository_metadata_document(
    owner: str,
    repo: str,
    token: str = "",
    session: requests.Session | None = None,
) -> RepoFile:
    """Fetch repository info and contributors and render them as a virtual file."""
    session = session or requests.Session()
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    logger.info("Fetching repository metadata for %s/%s", owner, repo)
    resp = session.get(f"{GITHUB_API_URL}/repos/{owner}/{repo}", headers=headers, timeout=30)
    resp.raise_for_status()
    repo_data = resp.json()

    resp = session.get(
        f"{GITHUB_API_URL}/repos/{owner}/{repo}/contributors",
        headers=headers,
        params={"per_page": 100},
        timeout=30,
    )
    resp.raise_for_status()
    contributors = resp.json()
    logger.info("Found %d contributors", len(contributors))

    return RepoFile(
        path=METADATA_FILE_PATH,
        content=render_metadata_document(owner, repo, repo_data, contributors),
    )
