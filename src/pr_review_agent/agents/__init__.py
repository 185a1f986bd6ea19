from pr_review_agent.agents.reviewer import OutcomeStatus, ReviewerAgent, ReviewOutcome

__all__ = ["OutcomeStatus", "ReviewerAgent", "ReviewOutcome"]
