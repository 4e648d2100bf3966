"""
Application layer package.

Orchestrates the domain: detects pagination, classifies exceptions,
builds metadata, runs the extension pipeline and assembles envelopes.
Framework-agnostic; the interfaces layer adapts HTTP requests to it.
"""
