import random
from datetime import timedelta
from typing import List, Optional

from prpal.data_providers.base import PullRequestData, PullRequestDataProvider
from prpal.models.base_model import utcnow
from prpal.models.repository import Repository
from prpal.models.user import User

DUMMY_TITLES = [
    "Fix authentication bug in user sessions",
    "Add responsive design for mobile devices",
    "Implement caching for improved performance",
    "Update dependencies and security patches",
    "Refactor user profile component",
    "Add integration tests for API endpoints",
    "Improve error handling in payment flow",
    "Update documentation and README",
    "Fix memory leak in background jobs",
    "Add feature flags for A/B testing",
]
DUMMY_AUTHORS = ["developer1", "codereviewer", "teamlead", "contributor"]
# Weighted towards open PRs.
DUMMY_STATES = ["open", "open", "open", "closed", "merged"]

PYTHON_DIFF = """diff --git a/app/models/user.py b/app/models/user.py
index 1234567..abcdefg 100644
--- a/app/models/user.py
+++ b/app/models/user.py
@@ -15,6 +16,15 @@ class User(AbstractUser):
     def __str__(self):
         return f"{self.username} ({self.get_role_display()})"

+    def can_edit_user(self, target_user):
+        if self.role == 'admin':
+            return True
+        return self == target_user
+
     def save(self, *args, **kwargs):
"""

RUBY_DIFF = """diff --git a/app/controllers/users_controller.rb b/app/controllers/users_controller.rb
index 1234567..abcdefg 100644
--- a/app/controllers/users_controller.rb
+++ b/app/controllers/users_controller.rb
@@ -15,8 +15,12 @@ class UsersController < ApplicationController
   def update
-    if @user.update(user_params)
+    if @user.update(user_params) && verify_user_permissions
       redirect_to @user, notice: 'User was successfully updated.'
+    elsif !verify_user_permissions
+      redirect_to @user, alert: 'Insufficient permissions to update user.'
     else
       render :edit
     end
"""

JAVASCRIPT_DIFF = """diff --git a/src/components/UserProfile.jsx b/src/components/UserProfile.jsx
index 1234567..abcdefg 100644
--- a/src/components/UserProfile.jsx
+++ b/src/components/UserProfile.jsx
@@ -1,4 +1,5 @@
 import React, { useState, useEffect } from 'react';
+import { useAuth } from '../hooks/useAuth';
 import { Card, Button, Alert } from './ui';
@@ -25,6 +27,11 @@ const UserProfile = ({ userId }) => {
   const handleEdit = () => {
+    if (!hasPermission('user:edit', user)) {
+      setError('You do not have permission to edit this user');
+      return;
+    }
     setEditing(true);
   };
"""

GENERIC_DIFF = """diff --git a/README.md b/README.md
index 1234567..abcdefg 100644
--- a/README.md
+++ b/README.md
@@ -1,4 +1,4 @@
-# {name}
+# {name} - Enhanced Security

 A sample application demonstrating best practices.
@@ -15,6 +15,10 @@ To get started:
+## Security Features
+
+- Enhanced user permission checking
+- Improved access control validation
+
 ## Contributing
"""


def detect_language(repository_name: str) -> str:
    name = repository_name.lower()
    if "rails" in name or "ruby" in name:
        return "ruby"
    if "js" in name or "node" in name or "react" in name:
        return "javascript"
    if "py" in name or "django" in name or "flask" in name:
        return "python"
    return "generic"


class DummyPullRequestDataProvider(PullRequestDataProvider):
    """Generates plausible pull requests without talking to anyone.

    Pass a seeded ``random.Random`` for reproducible output.
    """

    name = "dummy"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_title(self) -> str:
        return self.rng.choice(DUMMY_TITLES)

    def fetch_pr_details(
        self, owner: str, name: str, pr_number: int, user: User
    ) -> PullRequestData:
        now = utcnow()
        return PullRequestData(
            number=pr_number,
            title=f"{self.generate_title()} (#{pr_number})",
            body="This is a dummy pull request for testing and development purposes.",
            state="open",
            author="dummy-developer",
            url=f"https://github.com/{owner}/{name}/pull/{pr_number}",
            created_at=now - timedelta(days=3),
            updated_at=now - timedelta(hours=1),
        )

    def fetch_pr_diff(self, owner: str, name: str, pr_number: int, user: User) -> str:
        language = detect_language(name)
        if language == "ruby":
            return RUBY_DIFF
        if language == "javascript":
            return JAVASCRIPT_DIFF
        if language == "python":
            return PYTHON_DIFF
        return GENERIC_DIFF.replace("{name}", name)

    def fetch_repository_pull_requests(
        self, repository: Repository, user: User
    ) -> List[PullRequestData]:
        now = utcnow()
        pull_requests = []
        seen = set()
        for index in range(1, self.rng.randint(3, 8) + 1):
            number = index + self.rng.randint(10, 100)
            if number in seen:
                continue
            seen.add(number)
            pull_requests.append(
                PullRequestData(
                    number=number,
                    title=self.generate_title(),
                    body=f"This is a dummy pull request for testing purposes. Repository: {repository.full_name}",
                    state=self.rng.choice(DUMMY_STATES),
                    author=self.rng.choice(DUMMY_AUTHORS),
                    url=f"{repository.github_url}/pull/{number}",
                    created_at=now - timedelta(seconds=self.rng.randint(0, 30 * 86400)),
                    updated_at=now - timedelta(seconds=self.rng.randint(0, 7 * 86400)),
                )
            )
        return pull_requests
