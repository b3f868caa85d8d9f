"""
Integration credentials.

Contains credentials for the issue-tracker tasks.
"""

from .base import CredentialSpec

INTEGRATION_CREDENTIALS = {
    "jira_api_token": CredentialSpec(
        env_var="JIRA_API_TOKEN",
        task_types=["jira.getStory", "jira.createStory", "jira.addComment"],
        help_url="https://id.atlassian.com/manage-profile/security/api-tokens",
        description="Jira API token used for issue reads, creates and comments",
    ),
    "jira_email": CredentialSpec(
        env_var="JIRA_EMAIL",
        task_types=["jira.getStory"],
        description="Account e-mail paired with the Jira API token",
    ),
}
