from __future__ import annotations

from enum import Enum


class Page(str, Enum):
    INTRO = "intro"
    NEW_CLIENT = "new-client"
    NEW_CLIENT_PET_INFO = "new-client-pet-info"
    EXISTING_CLIENT = "existing-client"
    EXISTING_CLIENT_PETS = "existing-client-pets"
    EUTHANASIA_INTRO = "euthanasia-intro"
    EUTHANASIA_SERVICE_AREA = "euthanasia-service-area"
    EUTHANASIA_PORTLAND = "euthanasia-portland"
    EUTHANASIA_HIGH_PEAKS = "euthanasia-high-peaks"
    EUTHANASIA_CONTINUED = "euthanasia-continued"
    REQUEST_VISIT_CONTINUED = "request-visit-continued"
    SUCCESS = "success"


# Pages whose "next" action submits the request instead of moving on.
TERMINAL_PAGES = frozenset({Page.EUTHANASIA_CONTINUED, Page.REQUEST_VISIT_CONTINUED})

# Pages that display recommended appointment times.
SCHEDULING_PAGES = frozenset({Page.REQUEST_VISIT_CONTINUED})


class ClientMode(str, Enum):
    NEW = "new"
    EXISTING = "existing"


YES = "Yes"
NO = "No"

PORTLAND_AREA = "Kennebunk / Greater Portland / Augusta Area"
HIGH_PEAKS_AREA = "Maine High Peaks Area"
SERVICE_AREAS = (PORTLAND_AREA, HIGH_PEAKS_AREA)

NO_PREFERENCE = "I have no preference"
