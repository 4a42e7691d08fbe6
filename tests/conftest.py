import pytest
from reviewgate.config import ReviewConfig


@pytest.fixture
def review_config():
    """A small in-memory configuration with a blocking and a lenient branch."""
    return ReviewConfig.model_validate({
        "global": {
            "include_extensions": [".py", ".js"],
            "exclude_patterns": ["**/node_modules/**", "**/*secrets*"],
            "concurrency_limit": 2,
            "max_content_length": 1000,
        },
        "llm": {"provider": "local", "model": "test-model"},
        "branches": {
            "Main": {
                "blocking": True,
                "severity_threshold": "medium",
                "blocking_criteria": "high_only",
                "review_criteria": {"security": ["No eval on user input"]},
            },
            "develop": {
                "blocking": False,
                "severity_threshold": "low",
            },
        },
    })
