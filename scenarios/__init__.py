# Document Management - Demo Scenarios
# Fixture data and scenario walkthroughs shared by both flows

from .demo_data import load_demo_data, seed_fixtures, fga_tuples
from .walkthrough import run_scenarios, SCENARIOS

__all__ = ['load_demo_data', 'seed_fixtures', 'fga_tuples', 'run_scenarios', 'SCENARIOS']
