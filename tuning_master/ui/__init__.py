"""User interface front-ends for Tuning Master."""
