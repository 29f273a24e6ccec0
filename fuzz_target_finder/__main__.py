from fuzz_target_finder.cli import main

main()
