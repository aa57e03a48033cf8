"""
coopflow Package
================

Engine for the cooperative flow puzzle: one player holds the power key,
the other draws non-overlapping paths between matching endpoints.

- flow_core: layouts, solvability gate, path session, level controller
- evaluation: batch evaluation of puzzle-playing agents

All level rules and tunables are in level_config.yaml.
"""
