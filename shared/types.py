# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class VoteAction(Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass
class User:
    """An end user, as described by the identity provider profile."""

    id: str
    name: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: dict) -> "User":
        # A plain whitespace split; single names end up with an empty last name.
        name = (profile.get("name") or "").strip()
        name_parts = name.split()
        return cls(
            id=str(profile.get("sub") or ""),
            name=name,
            first_name=name_parts[0] if name_parts else "",
            last_name=" ".join(name_parts[1:]),
            email=profile.get("email"),
            avatar=profile.get("picture"),
        )
