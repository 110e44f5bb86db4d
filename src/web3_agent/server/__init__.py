"""HTTP API for web3-agent."""
