"""Discovery call demo backend.

Scrapes a prospect's company website, analyzes it with an LLM and provisions
voice agents that run a discovery call and a sales call with the prospect.
"""

__version__ = "0.1.0"
