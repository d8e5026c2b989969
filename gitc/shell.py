"""
Shell integration for gitc.

The zsh snippet wraps the ``gitc`` executable so that a direct clone changes
the current directory, and registers tab completion backed by
``gitc complete``.
"""

ZSH_INIT = r"""
# gitc shell integration, load with: eval "$(gitc shell-init)"

gitc() {
  if [[ "$1" == "clone" ]]; then
    shift
    local cd_file ret dest
    cd_file="$(mktemp -t gitc.XXXXXX)"
    command gitc clone --cd-file "$cd_file" "$@"
    ret=$?
    dest="$(cat "$cd_file" 2>/dev/null)"
    rm -f "$cd_file"
    if [[ $ret -eq 0 && -n "$dest" && -d "$dest" ]]; then
      cd "$dest"
    fi
    return $ret
  fi
  command gitc "$@"
}

_gitc_repos() {
  local -a lines candidates
  local header kind text line
  lines=("${(@f)$(command gitc complete -- "${words[CURRENT]}" 2>/dev/null)}")
  header="${lines[1]}"
  kind="${header%%$'\t'*}"
  text="${header#*$'\t'}"
  if [[ "$kind" != "describe" ]]; then
    _message "$text"
    return 1
  fi
  for line in "${(@)lines[2,-1]}"; do
    [[ -n "$line" ]] && candidates+=("${line%%$'\t'*}:${line#*$'\t'}")
  done
  _describe "$text" candidates
}

_gitc() {
  if (( CURRENT == 2 )); then
    _values 'gitc command' clone refresh-cache clear-cache complete resolve configure shell-init
  elif [[ "${words[2]}" == "clone" || "${words[2]}" == "resolve" ]] && (( CURRENT == 3 )); then
    _gitc_repos
  fi
}

compdef _gitc gitc
""".lstrip()


def shell_init(shell: str = "zsh") -> str:
    """Get the integration snippet for a shell.

    Args:
        shell: Shell name

    Returns:
        str: Script to evaluate in the shell

    Raises:
        ValueError: If the shell is not supported
    """
    if shell != "zsh":
        raise ValueError(f"Unsupported shell '{shell}', only zsh is supported")
    return ZSH_INIT
