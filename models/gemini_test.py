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

import unittest
from unittest.mock import MagicMock, patch

from models import gemini
from models import prompts


class GuideChatTest(unittest.TestCase):

    @patch("models.gemini.genai.Client")
    def test_call_guide_chat_sends_history_and_instruction(self, mock_client_cls):
        mock_chat = MagicMock()
        mock_chat.send_message.return_value = MagicMock(text="Lo sparo è a mezzanotte!")
        mock_client = mock_client_cls.return_value
        mock_client.chats.create.return_value = mock_chat

        reply = gemini.call_guide_chat(
            "Quando bruciano il pupo?",
            [("user", "Ciao"), ("model", "Ciao a te!")],
            api_key="test-key",
        )

        self.assertEqual(reply, "Lo sparo è a mezzanotte!")
        mock_client_cls.assert_called_once_with(api_key="test-key")
        _, kwargs = mock_client.chats.create.call_args
        self.assertEqual(kwargs["model"], gemini.DEFAULT_MODEL)
        self.assertEqual(
            kwargs["config"].system_instruction, prompts.GUIDE_SYSTEM_INSTRUCTION
        )
        history = kwargs["history"]
        self.assertEqual([content.role for content in history], ["user", "model"])
        self.assertEqual(history[1].parts[0].text, "Ciao a te!")
        mock_chat.send_message.assert_called_once_with("Quando bruciano il pupo?")

    @patch("models.gemini.genai.Client")
    def test_call_guide_chat_empty_response(self, mock_client_cls):
        mock_chat = mock_client_cls.return_value.chats.create.return_value
        mock_chat.send_message.return_value = MagicMock(text="")
        with self.assertRaises(gemini.GeminiInvalidResponseException):
            gemini.call_guide_chat("Ciao", api_key="test-key")

    @patch("models.gemini.genai.Client")
    def test_reply_as_guide_without_key(self, mock_client_cls):
        self.assertEqual(
            gemini.reply_as_guide("Ciao", api_key=None),
            prompts.MISSING_API_KEY_REPLY,
        )
        mock_client_cls.assert_not_called()

    @patch("models.gemini.genai.Client")
    def test_reply_as_guide_swallows_api_errors(self, mock_client_cls):
        mock_client_cls.return_value.chats.create.side_effect = RuntimeError("quota")
        self.assertEqual(
            gemini.reply_as_guide("Ciao", api_key="test-key"),
            prompts.GUIDE_ERROR_REPLY,
        )


if __name__ == "__main__":
    unittest.main()
