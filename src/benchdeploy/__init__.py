"""
bench-deploy

Benchmarks a workload image on a set of candidate machine shapes and deploys
it onto the shape with the best utilization per unit of cost.

Package structure:
- core/: Candidate queue, lifecycle executor, workers, coordinator, promoter
- models/: Data models (instance configs, results, worker outcomes)
- infra/: External tooling (command execution, gcloud, kubectl, run log)
- reporting/: Text reports for the console
- config: Run configuration (YAML, environment, CLI)
- frontend: The bench-deploy command line
"""

__version__ = "1.0.0"
