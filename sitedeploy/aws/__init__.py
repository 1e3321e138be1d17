"""AWS managers and lookups used by the sitedeploy plugin."""
