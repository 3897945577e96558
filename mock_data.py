"""Mock responses for testing without API calls."""

# Shape of a Gemini security review, wrapped in a markdown fence as the
# model sometimes does
MOCK_SECURITY_RESPONSE = """```json
{
  "findings": [
    {
      "severity": "MEDIUM",
      "kind": "Missing Input Validation",
      "line": 1,
      "description": "Mock finding: request data reaches the handler without validation."
    }
  ],
  "summary": "1 mock security finding"
}
```"""
