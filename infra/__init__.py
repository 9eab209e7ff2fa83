"""CDK infrastructure for the REST API."""
