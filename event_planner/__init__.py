"""Top-level package for the Event Planner.

The primary modules are:

* ``models`` - record types for events, budgets, expenses and guests
* ``db`` - sqlite storage for those records
* ``stores`` - per-session state containers used by the pages
* ``budget_allocation`` - per-event-type budget templates
* ``event_analytics`` - budget and RSVP statistics
* ``visualization`` - functions that generate Plotly figures

To run the app from the command line you can execute:

```bash
python run_event_planner.py
```
"""

from . import budget_allocation  # noqa: F401  # re-exported for convenience
from . import event_analytics  # noqa: F401  # re-exported for convenience
from . import models  # noqa: F401  # re-exported for convenience

__version__ = "0.1.0"

__all__ = ["budget_allocation", "event_analytics", "models"]
