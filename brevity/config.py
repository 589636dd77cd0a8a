from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    openrouter_model: str = ""
    planner_model: str = ""  # optional per-role overrides
    synthesizer_model: str = ""
    finalizer_model: str = ""
    extractor_model: str = ""
    navigator_model: str = ""
    llm_max_tokens: int = 2048
    llm_input_cost_per_mtok: float = 0.0  # used when the gateway reports no cost
    llm_output_cost_per_mtok: float = 0.0

    # Search
    search_provider: str = "duckduckgo"  # duckduckgo | tavily | brave
    tavily_api_key: str = ""
    tavily_search_depth: str = "basic"  # basic | advanced
    brave_api_key: str = ""
    search_max_results: int = 5
    search_min_interval_seconds: float = 1.0  # 0 disables the rate limiter
    search_cost: float = 0.0  # flat cost booked per successful search

    # Fetch
    fetch_enabled: bool = True
    fetch_timeout_seconds: float = 15.0
    fetch_max_chars: int = 32768

    # Research loop
    research_strategy: str = "scratchpad"  # scratchpad | graph-reader
    max_iterations: int = 5
    graph_max_steps: int = 15
    graph_min_facts_for_answer_check: int = 3
    graph_min_page_chars: int = 200
    graph_max_neighbors: int = 4
    graph_direct_fact_threshold: int = 12
    graph_condense_batch_size: int = 8
    graph_finalize_retries: int = 2
    graph_retry_knowledge_chars: int = 2000
    graph_research_goal_max_chars: int = 300

    # App
    debug: bool = False
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = ""  # empty keeps logs on stderr only

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
