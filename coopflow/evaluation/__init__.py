"""
Evaluation Package
==================

Contains the seed bank and evaluation harness for scoring puzzle agents.
"""

from coopflow.evaluation.run_eval import evaluate_agent, load_seed_bank

__all__ = ["evaluate_agent", "load_seed_bank"]
