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

# Pupo ids live in a 32-bit INTEGER column on Postgres.
MAX_PUPO_ID = 2**31 - 1

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
UPLOAD_KEY_PREFIX = "pupi"
DEFAULT_IMAGE_EXTENSION = "jpg"

ADMIN_PASSWORD_HEADER = "x-admin-password"

MAX_CHAT_MESSAGE_LENGTH = 2000
MAX_CHAT_HISTORY_ITEMS = 50
