"""Agent flow execution: graph model, chain discovery and completion calls."""
