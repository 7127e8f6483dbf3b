"""
Domain signals.

Collaborators (notifications, analytics, paywall prompts) subscribe here;
receivers never feed anything back into the engines.

Usage:
    from utils.signals import concept_mastered

    @concept_mastered.connect
    def on_mastered(sender, **kwargs):
        print(kwargs['user_id'], kwargs['concept_id'])
"""
import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

learning_signals = Namespace()

# Sent after a graded review pushes a concept into the mastered phase.
# kwargs: user_id, concept_id, direction, interval_days
concept_mastered = learning_signals.signal('concept-mastered')

# Sent once per day when the ledger first reaches the daily goal.
# kwargs: user_id, date, words_studied, goal
daily_goal_completed = learning_signals.signal('daily-goal-completed')

# Sent when a keep decision is rejected by the daily quota.
# kwargs: user_id, quota, premium
quota_exceeded = learning_signals.signal('quota-exceeded')


def emit(signal, sender, **kwargs) -> None:
    """Send a signal; a failing receiver never breaks the engine that sent it."""
    if not signal.receivers:
        return
    for receiver in signal.receivers_for(sender):
        try:
            receiver(sender, **kwargs)
        except Exception:
            logger.exception("Receiver %r failed for signal %s", receiver, signal.name)
