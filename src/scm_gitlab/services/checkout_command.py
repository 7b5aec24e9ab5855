"""Shell command that clones a repository and checks a commit out."""

from __future__ import annotations

from scm_gitlab.domain.entities import CheckoutCommand

CHECKOUT_COMMAND_NAME = "sd-checkout-code"


def build_checkout_command(
    host: str,
    org: str,
    repo: str,
    branch: str,
    sha: str,
    username: str,
    email: str,
    pr_ref: str | None = None,
) -> CheckoutCommand:
    """Build the ``&&``-joined checkout command.

    For pull requests the pipeline branch is reset to and the PR head is
    fetched and merged on top of it.
    """
    checkout_url = f"{host}/{org}/{repo}"
    checkout_ref = branch if pr_ref else sha

    command = [
        f"echo Cloning {checkout_url}, on branch {branch}",
        f"export SCM_URL={checkout_url}",
        'if [ ! -z $SCM_USERNAME ] && [ ! -z $SCM_ACCESS_TOKEN ]; then '
        'SCM_URL="$SCM_USERNAME:$SCM_ACCESS_TOKEN@$SCM_URL"; fi',
        f"git clone --quiet --progress --branch {branch} https://$SCM_URL $SD_SOURCE_DIR",
        f"git reset --hard {checkout_ref}",
        f"echo Reset to {checkout_ref}",
        "echo Setting user name and user email",
        f"git config user.name {username}",
        f"git config user.email {email}",
    ]

    if pr_ref:
        fetch_ref = pr_ref.replace("merge", "head:pr", 1)
        command.extend(
            [
                f"echo Fetching PR and merging with {branch}",
                f"git fetch origin {fetch_ref}",
                f"git merge --no-edit {sha}",
            ]
        )

    return CheckoutCommand(name=CHECKOUT_COMMAND_NAME, command=" && ".join(command))
