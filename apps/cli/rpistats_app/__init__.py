"""Command line front end for rpistats."""
