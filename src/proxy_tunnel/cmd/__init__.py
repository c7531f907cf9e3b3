"""Command line interface modules.

This package provides the command-line front end for:
- Probing an upstream proxy with a SOCKS5 or HTTP CONNECT negotiation
- Reporting negotiation outcomes
- Configuring log output
"""
