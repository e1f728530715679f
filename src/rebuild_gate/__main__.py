from rebuild_gate.cli import main

raise SystemExit(main())
