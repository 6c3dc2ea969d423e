"""
Application Layer

Contains use cases, command/query objects, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: write operations (PlayTrackCommand, SkipTrackCommand, LeaveChannelCommand)
  and the CommandDispatcher that turns them into reply text
- queries/: read operations (GetQueueQuery)
- services/: PlaybackSession and SessionRegistry
- interfaces/: Port interfaces for infrastructure adapters
"""
