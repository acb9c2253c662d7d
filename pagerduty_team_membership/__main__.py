"""Allow running as: python -m pagerduty_team_membership"""

from pagerduty_team_membership.cli import main

main()
