"""Package setup for pagerduty-team-membership."""

from setuptools import setup

setup(
    name="pagerduty-team-membership",
    version="1.0.0",
    description="Lifecycle handlers for PagerDuty team memberships",
    packages=["pagerduty_common", "pagerduty_team_membership"],
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.25.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "pd-team-membership=pagerduty_team_membership.cli:main",
        ],
    },
)
