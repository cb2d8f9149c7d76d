"""
Inputs of a listing build.

This package is responsible for:
* Loading the listing source (or synthesizing one from a package manifest).
* Fetching the listing published by the previous run.
* Building the set of package ids known to be resolvable.
"""
