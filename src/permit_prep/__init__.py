# ABOUTME: Study analytics and recommendation gating for the CA DMV permit prep app.
# ABOUTME: Subpackages: common, analytics, diagnostic, recommendation; CLI lives in permit_prep.cli.

__version__ = "0.1.0"
