from demin_sim.scoring.summary import SimulationSummary, summarize

__all__ = ["SimulationSummary", "summarize"]
