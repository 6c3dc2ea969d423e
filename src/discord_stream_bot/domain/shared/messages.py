"""Centralized message constants for error messages, logging, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Resolution Errors
    EMPTY_QUERY = "Query cannot be empty"
    NO_RESULTS = "No results found"
    INVALID_RESULT = "Invalid video result"
    SEARCH_FAILED = "Search failed for '{query}'"

    # Voice Errors
    VOICE_CONNECT_TIMEOUT = "Failed to establish voice connection within {timeout:g}s"
    VOICE_CONNECT_FAILED = "Failed to establish voice connection: {error}"
    CHANNEL_NOT_VOICE = "Channel {channel_id} is not a voice channel"
    VOICE_NOT_READY = "Voice connection is not ready"
    SINK_NOT_SUBSCRIBED = "Audio sink is not subscribed to a voice connection"

    # Pipeline Errors
    PROCESS_SPAWN_FAILED = "failed to start {executable}: {error}"
    PROCESS_EXITED = "exited with code {returncode}"

    # Settings Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Resolution
    RESOLVE_URL_DETECTED = "YouTube URL detected: %s"
    RESOLVE_SEARCHING = "Searching for: %s"
    RESOLVE_FOUND = "Found: %s (%s)"
    RESOLVE_NO_RESULTS = "No results for query: %s"
    RESOLVE_INVALID_RESULT = "Top result for '%s' has no usable reference"
    RESOLVE_SEARCH_FAILED = "yt-dlp search failed for: %s"
    RESOLVE_UNTITLED_RESULT = "Result for '%s' has no title, using '%s'"
    TITLE_LOOKUP_DISABLED = "Link title lookup disabled, using '%s' for %s"
    TITLE_LOOKUP_FAILED = "Title lookup failed for %s, using '%s': %r"
    TITLE_LOOKUP_EMPTY = "Title lookup for %s returned no title, using '%s'"

    # Pipeline
    PIPELINE_STARTED = "Pipeline #%s started for %s (fetcher pid=%s, transcoder pid=%s)"
    PIPELINE_SPAWN_FAILED = "Pipeline spawn failed: %s"
    PIPELINE_CLOSED = "Pipeline #%s closed"
    PIPELINE_BROKEN_PIPE = "Pipeline #%s: broken pipe while copying (downstream stopped)"
    PIPELINE_COPY_ERROR = "Pipeline #%s: copy loop failed: %r"
    PIPELINE_PROCESS_FAILED = "Pipeline #%s: %s"
    FETCHER_STDERR = "yt-dlp error: %s"
    TRANSCODER_STDERR = "ffmpeg error: %s"
    PROCESS_CLEANUP_ERROR = "Error cleaning up %s process: %r"

    # Voice
    VOICE_CONNECTING = "Connecting to voice channel %s in guild %s"
    VOICE_CONNECTED = "Voice connection ready in channel %s (guild %s)"
    VOICE_CONNECT_FAILED = "Failed to establish voice connection in guild %s: %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_DESTROY_ERROR = "Error destroying voice connection in guild %s: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_LOST = "Voice connection lost in guild %s, releasing it (%s still queued)"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"

    # Sink
    SINK_STARTED = "Audio started playing in guild %s"
    SINK_FINISHED = "Sink finished in guild %s (error=%r)"
    SINK_PLAY_FAILED = "Sink refused stream for '%s' in guild %s: %r"

    # Session
    SESSION_CREATED = "Created playback session for guild %s"
    SESSION_LOADING = "Loading: %s (guild %s)"
    SESSION_NOW_PLAYING = "Now playing: %s (guild %s, #%s)"
    SESSION_ENQUEUED = "Queued '%s' in guild %s (waiting: %s)"
    SESSION_QUEUE_EMPTY = "Queue empty in guild %s, staying connected"
    SESSION_TRACK_FAILED = "Track '%s' failed in guild %s: %s"
    SESSION_STALE_EVENT = "Ignoring stale %s event #%s in guild %s"
    SESSION_SKIPPED = "Skipping '%s' in guild %s"
    SESSION_DISCONNECTED = "Session reset in guild %s (dropped %s queued)"
    SESSION_RESOLUTION_DISCARDED = "Discarding resolved '%s' in guild %s: session was reset"
    SESSION_EVENT_HANDLER_ERROR = "Error handling %s event in guild %s"
    REGISTRY_CLOSED = "Closed %d playback session(s)"

    # Commands
    COMMAND_FAILED = "Command %s failed in guild %s: %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting bot (environment: {environment})"
    BOT_STARTING_RUN = "Running bot..."
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_READY = "Logged in as %s (ID: %s)"
    BOT_CONNECTED_GUILDS = "Connected to %d guilds"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in /%s: %r"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"
    BOT_SYNCED_GUILD = "Synced %d slash commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync slash commands to guild %s: %r"
    BOT_SYNCED_GLOBAL = "Synced %d slash commands globally"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync global slash commands: %r"
    BOT_SYNC_ON_STARTUP_FAILED = "Failed to sync commands on startup: %r"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error shutting down container: %r"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"

    # Logging setup
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"
    BINARIES_MISSING = "Required executables not found on PATH: %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Play
    PLAY_NOW_PLAYING = "🎵 Now playing: **{title}**"
    PLAY_ADDED_TO_QUEUE = "🎵 Added to queue: **{title}**\n📝 Position: {position}"
    PLAY_DISCARDED = "⏹️ Playback was stopped before **{title}** could be queued."

    # Skip
    SKIP_SUCCESS = "⏭️ Skipped!"
    SKIP_NOTHING = "❌ Nothing to skip!"

    # Leave
    LEAVE_SUCCESS = "👋 Disconnected and cleared the queue."
    LEAVE_NOT_CONNECTED = "❌ I'm not in a voice channel!"

    # Queue
    QUEUE_WAITING = "📝 {count} track(s) waiting."
    QUEUE_EMPTY = "📭 The queue is empty."

    # State / Validation
    STATE_SERVER_ONLY = "❌ This command can only be used in a server."
    STATE_NEED_TO_BE_IN_VOICE = "❌ You need to be in a voice channel!"
    STATE_VERIFY_VOICE_FAILED = "❌ Could not verify your voice state."

    # Errors
    ERROR_GENERIC = "❌ Error: {error}"
    ERROR_OCCURRED = "❌ An error occurred: {error}"
