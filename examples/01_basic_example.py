from pathlib import Path

from rdocker import InvocationContext, run

# Same as `rdocker -u deploy buildbox -- docker build -t demo .`; run it from a directory with a Dockerfile.
ctx = InvocationContext(
    user="deploy",
    remote_host="buildbox",
    remote_command="docker build -t demo .",
    local_dir=Path.cwd(),
)

print(run(ctx))
