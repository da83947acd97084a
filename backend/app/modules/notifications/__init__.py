# Notification side effects
